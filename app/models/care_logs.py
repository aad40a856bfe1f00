# app/models/care_logs.py
"""
보호자가 기록하는 케어 로그 문서 구조.

Firestore 컬렉션 'food_logs', 'poop_logs', 'supplement_logs', 'measurement_logs'에
대응합니다. 모든 로그는 pet_id와 logged_at(UTC datetime)을 가집니다.
from_dict는 누락된 필드를 None으로 두고 절대 예외를 던지지 않습니다.
"""

import logging
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from app.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


class StoolColor(Enum):
    BROWN = "brown"
    DARK_BROWN = "dark_brown"
    LIGHT_BROWN = "light_brown"
    BLACK = "black"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    WHITE = "white"
    GREY = "grey"
    CLAY = "clay"


class StoolConsistency(Enum):
    REGULAR = "regular"
    SOFT = "soft"
    STICKY = "sticky"
    HARD = "hard"
    DIARRHEA = "diarrhea"


class StoolAmount(Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class MoistureLevel(Enum):
    DRY = "dry"
    NORMAL = "normal"
    WET = "wet"


class BehaviorFlag(Enum):
    NOT_APPLICABLE = "not_applicable"
    UNDESIRABLE_BEHAVIOR = "undesirable_behavior"
    LIP_PAWS = "lip_paws"
    VOMIT = "vomit"
    OTHER = "other"


def _parse_enum(enum_cls, value, log_id=None):
    """문자열을 Enum 멤버로 바꾸고, 알 수 없는 값은 None으로 둡니다."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        logger.warning(f"알 수 없는 {enum_cls.__name__} 값 '{value}' (log_id: {log_id})")
        return None


def _parse_logged_at(value) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return DateTimeUtils.to_utc_datetime(value)
    except ValueError:
        return None


def _parse_flag(value, field_name: str, log_id=None) -> Optional[bool]:
    """bool 필드 값 정규화. "true"/"false" 문자열과 0/1은 허용하고, 그 외 값은 None으로 둡니다."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "no", "0", ""):
        return False
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    logger.warning(f"알 수 없는 {field_name} 값 '{value}' (log_id: {log_id})")
    return None


def _pick_known(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in known}


@dataclass
class PoopLog:
    """
    배변 관찰 기록 (Observation).
    평가에 들어간 이후에는 변경하지 않으며, 평가 결과에는 to_snapshot() 사본이 저장됩니다.
    """
    log_id: Optional[str] = None
    pet_id: Optional[str] = None
    logged_at: Optional[datetime] = None
    color: Optional[StoolColor] = None
    consistency: Optional[StoolConsistency] = None
    amount: Optional[StoolAmount] = None
    moisture_level: Optional[MoistureLevel] = None
    blood_present: Optional[bool] = None
    mucus_present: Optional[bool] = None
    smell_level: Optional[int] = None        # 1-5
    undesirable_behaviors: List[BehaviorFlag] = field(default_factory=list)
    undesirable_behavior_notes: Optional[str] = None
    user_rating: Optional[int] = None        # 1-10 주관 평가
    notes: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], log_id: Optional[str] = None) -> "PoopLog":
        processed_data = _pick_known(cls, data)
        if log_id:
            processed_data['log_id'] = log_id
        log_id = processed_data.get('log_id')

        processed_data['color'] = _parse_enum(StoolColor, processed_data.get('color'), log_id)
        processed_data['consistency'] = _parse_enum(StoolConsistency, processed_data.get('consistency'), log_id)
        processed_data['amount'] = _parse_enum(StoolAmount, processed_data.get('amount'), log_id)
        processed_data['moisture_level'] = _parse_enum(MoistureLevel, processed_data.get('moisture_level'), log_id)
        processed_data['logged_at'] = _parse_logged_at(processed_data.get('logged_at'))

        processed_data['blood_present'] = _parse_flag(processed_data.get('blood_present'), 'blood_present', log_id)
        processed_data['mucus_present'] = _parse_flag(processed_data.get('mucus_present'), 'mucus_present', log_id)

        behaviors = processed_data.get('undesirable_behaviors') or []
        if not isinstance(behaviors, (list, tuple)):
            logger.warning(f"undesirable_behaviors 형식 오류 '{behaviors}' (log_id: {log_id})")
            behaviors = []
        parsed_behaviors = [_parse_enum(BehaviorFlag, b, log_id) for b in behaviors]
        processed_data['undesirable_behaviors'] = [b for b in parsed_behaviors if b is not None]

        return cls(**processed_data)

    def has_behavior_flags(self) -> bool:
        """행동 플래그가 있고 not_applicable이 포함되지 않은 경우에만 True."""
        return (bool(self.undesirable_behaviors)
                and BehaviorFlag.NOT_APPLICABLE not in self.undesirable_behaviors)

    def to_snapshot(self) -> Dict[str, Any]:
        snapshot = asdict(self)
        for key, value in snapshot.items():
            if isinstance(value, Enum):
                snapshot[key] = value.value
        snapshot['undesirable_behaviors'] = [b.value for b in self.undesirable_behaviors]
        if self.logged_at:
            snapshot['logged_at'] = DateTimeUtils.to_iso_string(self.logged_at)
        return snapshot


@dataclass
class FoodLog:
    """식사 기록."""
    log_id: Optional[str] = None
    pet_id: Optional[str] = None
    logged_at: Optional[datetime] = None
    name: Optional[str] = None
    amount_grams: Optional[float] = None
    meal_type: Optional[str] = None
    calories: Optional[float] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], log_id: Optional[str] = None) -> "FoodLog":
        processed_data = _pick_known(cls, data)
        if log_id:
            processed_data['log_id'] = log_id
        processed_data['logged_at'] = _parse_logged_at(processed_data.get('logged_at'))
        return cls(**processed_data)


@dataclass
class SupplementLog:
    """영양제 기록."""
    log_id: Optional[str] = None
    pet_id: Optional[str] = None
    logged_at: Optional[datetime] = None
    name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None   # daily | weekly | as_needed
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], log_id: Optional[str] = None) -> "SupplementLog":
        processed_data = _pick_known(cls, data)
        if log_id:
            processed_data['log_id'] = log_id
        processed_data['logged_at'] = _parse_logged_at(processed_data.get('logged_at'))
        return cls(**processed_data)


@dataclass
class MeasurementLog:
    """체중/체형 측정 기록."""
    log_id: Optional[str] = None
    pet_id: Optional[str] = None
    logged_at: Optional[datetime] = None
    weight_kg: Optional[float] = None
    neck_cm: Optional[float] = None
    chest_cm: Optional[float] = None
    body_length_cm: Optional[float] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], log_id: Optional[str] = None) -> "MeasurementLog":
        processed_data = _pick_known(cls, data)
        if log_id:
            processed_data['log_id'] = log_id
        processed_data['logged_at'] = _parse_logged_at(processed_data.get('logged_at'))
        return cls(**processed_data)
