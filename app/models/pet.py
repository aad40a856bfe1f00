# app/models/pet.py
from dataclasses import dataclass, field, fields, asdict
from typing import Optional, List, Dict, Any

from app.models.care_logs import FoodLog, PoopLog, SupplementLog
from app.models.health_note import HealthNote
from app.utils.datetime_utils import DateTimeUtils


@dataclass
class PetProfile:
    """
    Firestore 'pets' 컬렉션 문서 구조.
    프롬프트에 들어가는 반려동물/보호자 신원 정보만 다룹니다.
    """
    pet_id: str
    user_id: str
    name: str
    species: Optional[str] = None
    breed: Optional[str] = None
    date_of_birth: Optional[str] = None
    weight: Optional[float] = None
    photo_url: Optional[str] = None
    owner_name: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], pet_id: Optional[str] = None) -> "PetProfile":
        """
        Firestore 문서 딕셔너리로부터 PetProfile을 생성합니다.
        알 수 없는 키는 무시하고, 생년월일은 YYYY-MM-DD 문자열로 맞춥니다.
        """
        known = {f.name for f in fields(cls)}
        processed_data = {k: v for k, v in data.items() if k in known}
        if pet_id:
            processed_data['pet_id'] = pet_id

        birth = processed_data.get('date_of_birth')
        if birth is not None and hasattr(birth, 'strftime'):
            processed_data['date_of_birth'] = birth.strftime('%Y-%m-%d')

        processed_data.setdefault('name', 'Unnamed pet')
        return cls(**processed_data)


@dataclass
class PetContext:
    """
    인사이트 요청 하나에 필요한 최신 데이터 묶음.
    요청마다 새로 조회하며 요청 사이에 공유하지 않습니다.
    """
    pet: PetProfile
    food: List[FoodLog] = field(default_factory=list)
    poop: List[PoopLog] = field(default_factory=list)
    supplements: List[SupplementLog] = field(default_factory=list)
    notes: List[HealthNote] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        return DateTimeUtils.to_json_safe({
            'pet': asdict(self.pet),
            'food': [asdict(log) for log in self.food],
            'poop': [log.to_snapshot() for log in self.poop],
            'supplements': [asdict(log) for log in self.supplements],
            'notes': [note.to_response() for note in self.notes],
        })
