# app/services/log_aggregator.py
"""
반려동물 로그 집계 서비스 (Log Aggregator)

Firestore에서 특정 반려동물의 최신 식사/배변/영양제/측정 로그와 건강 노트를 읽어옵니다.
모든 조회는 요청마다 새로 수행하며, 쓰기는 하지 않습니다.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from firebase_admin import firestore

from app.core.exceptions import ContextFetchError
from app.models.care_logs import FoodLog, PoopLog, SupplementLog, MeasurementLog
from app.models.health_note import HealthNote, RiskLevel
from app.models.pet import PetProfile, PetContext
from app.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

RECENT_LOG_LIMIT = 3
RECENT_NOTE_LIMIT = 5
RAG_SOURCE_LIMIT = 5


@dataclass
class LogWindow:
    """대시보드 계산용 기간 데이터."""
    food: List[FoodLog] = field(default_factory=list)
    poop: List[PoopLog] = field(default_factory=list)
    supplements: List[SupplementLog] = field(default_factory=list)
    measurements: List[MeasurementLog] = field(default_factory=list)
    latest_note: Optional[HealthNote] = None


def note_from_document(data: Dict[str, Any], note_id: Optional[str] = None) -> HealthNote:
    """저장된 health_notes 문서를 HealthNote로 변환합니다 (과거 문서의 누락 필드 허용)."""
    risk_value = data.get('risk_level')
    try:
        risk_level = RiskLevel(risk_value) if risk_value else None
    except ValueError:
        logger.warning(f"알 수 없는 risk_level '{risk_value}' (note_id: {note_id})")
        risk_level = None

    created_at = data.get('created_at')
    return HealthNote(
        summary=data.get('summary') or '',
        recommendations=data.get('recommendations') or '',
        risk_level=risk_level,
        owner_message=data.get('owner_message') or '',
        pet_id=data.get('pet_id'),
        user_id=data.get('user_id'),
        note_id=note_id,
        triggered_rules=list(data.get('triggered_rules') or []),
        created_at=DateTimeUtils.to_utc_datetime(created_at) if created_at else None,
    )


class LogAggregatorService:
    """
    반려동물 한 마리의 최근 기록을 모으는 서비스.
    """

    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.pets_collection = self.db.collection('pets')

    # --- 소유권/프로필 ---
    def get_pet(self, pet_id: str, user_id: str) -> PetProfile:
        """소유자가 일치하는 반려동물 프로필을 조회합니다."""
        try:
            pet_doc = self.pets_collection.document(pet_id).get()
        except Exception as e:
            logger.error(f"반려동물 조회 실패 ({pet_id}): {e}", exc_info=True)
            raise ContextFetchError(f"Failed to load pet: {e}")

        if not pet_doc.exists:
            raise ContextFetchError("Pet not found")
        pet_data = pet_doc.to_dict() or {}
        if pet_data.get('user_id') != user_id:
            # 다른 사용자의 반려동물은 존재 여부도 노출하지 않습니다.
            raise ContextFetchError("Pet not found")
        return PetProfile.from_dict(pet_data, pet_id=pet_id)

    # --- 공통 조회 ---
    def _recent(self, collection: str, pet_id: str, limit: int, order_field: str = 'logged_at') -> List[tuple]:
        query = (self.db.collection(collection)
                 .where('pet_id', '==', pet_id)
                 .order_by(order_field, direction=firestore.Query.DESCENDING)
                 .limit(limit))
        return [(doc.id, doc.to_dict() or {}) for doc in query.stream()]

    def _between(self, collection: str, pet_id: str, start: datetime, end: datetime) -> List[tuple]:
        query = (self.db.collection(collection)
                 .where('pet_id', '==', pet_id)
                 .where('logged_at', '>=', start)
                 .where('logged_at', '<', end)
                 .order_by('logged_at', direction=firestore.Query.DESCENDING))
        return [(doc.id, doc.to_dict() or {}) for doc in query.stream()]

    # --- 인사이트 컨텍스트 ---
    def fetch_pet_context(self, pet_id: str, user_id: str) -> PetContext:
        """
        프롬프트 구성에 필요한 최신 컨텍스트를 조회합니다.

        Returns:
            PetContext (식사/배변/영양제 각 최근 3건, 건강 노트 최근 5건)
        """
        pet = self.get_pet(pet_id, user_id)
        try:
            food = [FoodLog.from_dict(d, doc_id)
                    for doc_id, d in self._recent('food_logs', pet_id, RECENT_LOG_LIMIT)]
            poop = [PoopLog.from_dict(d, doc_id)
                    for doc_id, d in self._recent('poop_logs', pet_id, RECENT_LOG_LIMIT)]
            supplements = [SupplementLog.from_dict(d, doc_id)
                           for doc_id, d in self._recent('supplement_logs', pet_id, RECENT_LOG_LIMIT)]
            notes = [note_from_document(d, doc_id)
                     for doc_id, d in self._recent('health_notes', pet_id, RECENT_NOTE_LIMIT, 'created_at')]
        except Exception as e:
            logger.error(f"컨텍스트 로그 조회 실패 ({pet_id}): {e}", exc_info=True)
            raise ContextFetchError(f"Failed to load recent logs: {e}")

        return PetContext(pet=pet, food=food, poop=poop, supplements=supplements, notes=notes)

    def fetch_rag_snippets(self, pet_id: str) -> List[str]:
        """
        과거 건강 노트와 배변 인사이트를 한 줄 스니펫으로 만듭니다 (최신순).
        """
        try:
            notes = self._recent('health_notes', pet_id, RAG_SOURCE_LIMIT, 'created_at')
            insights = self._recent('poop_insights', pet_id, RAG_SOURCE_LIMIT, 'created_at')
        except Exception as e:
            logger.error(f"RAG 스니펫 조회 실패 ({pet_id}): {e}", exc_info=True)
            raise ContextFetchError(f"Failed to load prior notes: {e}")

        segments = []
        for _, note in notes:
            text = f"Insight | {note.get('risk_level') or 'risk n/a'} | {note.get('summary')}"
            if note.get('recommendations'):
                text += f" → {note['recommendations']}"
            segments.append((note.get('created_at'), text))

        for _, insight in insights:
            text = (f"Stool pattern | {insight.get('risk_level') or 'risk n/a'} | "
                    f"{insight.get('summary') or 'No summary'}")
            if insight.get('notes'):
                text += f" ({insight['notes']})"
            segments.append((insight.get('created_at'), text))

        segments.sort(key=lambda item: _sort_key(item[0]), reverse=True)
        return [text for _, text in segments]

    def fetch_poop_between(self, pet_id: str, start: datetime, end: datetime) -> List[PoopLog]:
        """배변 빈도 분류용 [start, end) 구간 배변 로그. 소유권은 호출 측에서 확인합니다."""
        try:
            return [PoopLog.from_dict(d, doc_id) for doc_id, d in self._between('poop_logs', pet_id, start, end)]
        except Exception as e:
            logger.error(f"배변 로그 구간 조회 실패 ({pet_id}): {e}", exc_info=True)
            raise ContextFetchError(f"Failed to load poop logs: {e}")

    def list_health_notes(self, pet_id: str, user_id: str, limit: int = 20) -> List[HealthNote]:
        """건강 노트 이력을 최신순으로 조회합니다."""
        self.get_pet(pet_id, user_id)
        try:
            return [note_from_document(d, doc_id)
                    for doc_id, d in self._recent('health_notes', pet_id, limit, 'created_at')]
        except Exception as e:
            logger.error(f"건강 노트 조회 실패 ({pet_id}): {e}", exc_info=True)
            raise ContextFetchError(f"Failed to load health notes: {e}")

    # --- 대시보드 기간 데이터 ---
    def fetch_log_window(self, pet_id: str, user_id: str, start: datetime, end: datetime) -> LogWindow:
        """
        [start, end) 구간의 식사/배변/영양제 로그와 최근 측정 2건, 최신 건강 노트를 조회합니다.
        """
        self.get_pet(pet_id, user_id)
        try:
            food = [FoodLog.from_dict(d, doc_id) for doc_id, d in self._between('food_logs', pet_id, start, end)]
            poop = [PoopLog.from_dict(d, doc_id) for doc_id, d in self._between('poop_logs', pet_id, start, end)]
            supplements = [SupplementLog.from_dict(d, doc_id)
                           for doc_id, d in self._between('supplement_logs', pet_id, start, end)]
            measurements = [MeasurementLog.from_dict(d, doc_id)
                            for doc_id, d in self._recent('measurement_logs', pet_id, 2)]
            latest = self._recent('health_notes', pet_id, 1, 'created_at')
        except Exception as e:
            logger.error(f"기간 로그 조회 실패 ({pet_id}): {e}", exc_info=True)
            raise ContextFetchError(f"Failed to load log window: {e}")

        latest_note = note_from_document(latest[0][1], latest[0][0]) if latest else None
        return LogWindow(food=food, poop=poop, supplements=supplements,
                         measurements=measurements, latest_note=latest_note)


def _sort_key(value) -> float:
    if value is None:
        return 0.0
    try:
        return DateTimeUtils.to_utc_datetime(value).timestamp()
    except ValueError:
        return 0.0
