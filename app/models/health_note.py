# app/models/health_note.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from app.utils.datetime_utils import DateTimeUtils


class RiskLevel(Enum):
    NORMAL = "normal"
    WATCH = "watch"
    SEE_VET = "see_vet"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def most_severe(cls, *levels: "RiskLevel") -> "RiskLevel":
        return max(levels, key=lambda level: level.severity)


_SEVERITY = {RiskLevel.NORMAL: 0, RiskLevel.WATCH: 1, RiskLevel.SEE_VET: 2}


@dataclass
class HealthNote:
    """
    Firestore 'health_notes' 컬렉션 문서 구조 (Assessment).
    모델 응답을 성공적으로 파싱한 경우에만 생성되며, 추가만 하고 수정하지 않습니다.
    """
    summary: str
    recommendations: str
    risk_level: Optional[RiskLevel]
    owner_message: str
    pet_id: Optional[str] = None
    user_id: Optional[str] = None
    note_id: Optional[str] = None
    triggered_rules: List[str] = field(default_factory=list)
    observations: List[Dict[str, Any]] = field(default_factory=list)
    raw_response: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    def to_response(self) -> Dict[str, Any]:
        """클라이언트 응답 형식 (camelCase)."""
        return {
            "id": self.note_id,
            "petId": self.pet_id,
            "summary": self.summary,
            "recommendations": self.recommendations,
            "riskLevel": self.risk_level.value if self.risk_level else None,
            "ownerMessage": self.owner_message,
            "triggeredRules": list(self.triggered_rules),
            "createdAt": DateTimeUtils.to_iso_string(self.created_at) if self.created_at else None,
        }

    def to_document(self) -> Dict[str, Any]:
        """Firestore 저장 형식."""
        return {
            "pet_id": self.pet_id,
            "user_id": self.user_id,
            "summary": self.summary,
            "recommendations": self.recommendations,
            "risk_level": self.risk_level.value if self.risk_level else None,
            "owner_message": self.owner_message,
            "triggered_rules": list(self.triggered_rules),
            "observations": list(self.observations),
            "raw_response": self.raw_response,
            "created_at": self.created_at,
        }


@dataclass
class BreedShare:
    label: str
    percentage: float
    traits: Optional[str] = None


@dataclass
class BreedBreakdown:
    """품종 추정 결과. 저장하지 않습니다."""
    breakdown: List[BreedShare]
    origin_story: str
    watchouts: List[str]

    def to_response(self) -> Dict[str, Any]:
        return {
            "breakdown": [
                {"label": share.label, "percentage": share.percentage, "traits": share.traits}
                for share in self.breakdown
            ],
            "originStory": self.origin_story,
            "watchouts": list(self.watchouts),
        }
