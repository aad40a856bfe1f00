# app/api/insights/services.py
import logging
from typing import Any, Dict, List, Optional

from app.core.exceptions import UpstreamError
from app.models.health_note import HealthNote, BreedBreakdown
from app.models.pet import PetContext
from app.services.firestore_service import save_health_note
from app.utils.datetime_utils import DateTimeUtils
from . import composer
from .escalation import (escalate, classify_frequency, EscalationVerdict, DayFrequency,
                         FREQUENCY_WINDOW_DAYS)
from .rules import evaluate_batch

logger = logging.getLogger(__name__)


class InsightService:
    """
    트리아지/품종 추정/대화 요청을 처리하는 서비스 클래스.
    로그 집계 -> 규칙 평가 -> 위험 등급 결정 -> 프롬프트 구성 -> 모델 호출 -> 파싱 -> 저장 순서로 동작합니다.
    """

    def __init__(self, aggregator, openai_service, note_store=save_health_note):
        self.aggregator = aggregator
        self.openai = openai_service
        self.note_store = note_store

    def get_context(self, pet_id: str, user_id: str) -> PetContext:
        return self.aggregator.fetch_pet_context(pet_id, user_id)

    def list_health_notes(self, pet_id: str, user_id: str) -> List[HealthNote]:
        return self.aggregator.list_health_notes(pet_id, user_id)

    def analyze(self, pet_id: str, user_id: str, image_url: Optional[str] = None) -> Dict[str, Any]:
        """
        최근 로그를 평가하고 모델에 설명을 요청한 뒤, 결과를 새 건강 노트로 저장합니다.

        Args:
            pet_id: 반려동물 ID
            user_id: 인증된 사용자 ID
            image_url: 선택적 배변 사진 URL

        Returns:
            저장된 건강 노트 + 로컬 판정 + 빈도 분류
        """
        context = self.aggregator.fetch_pet_context(pet_id, user_id)
        rag_snippets = self.aggregator.fetch_rag_snippets(pet_id)

        findings = evaluate_batch(context.poop)
        verdict: EscalationVerdict = escalate(findings)
        frequency = self._frequency(pet_id)

        payload = composer.compose(context, rag_snippets, findings, verdict, image_url=image_url)
        content, raw = self.openai.complete(payload)

        note = composer.parse(content)
        note = composer.reconcile(note, verdict)
        citations, snapshots = composer.split_findings(findings)
        note.pet_id = pet_id
        note.user_id = user_id
        note.triggered_rules = citations
        note.observations = snapshots
        note.raw_response = raw

        try:
            note = self.note_store(note)
        except Exception as e:
            raise UpstreamError(f"Failed to save health note: {e}")

        logger.info(f"트리아지 완료: {pet_id} (computed: {verdict.risk_level.value}, "
                    f"final: {note.risk_level.value}, citations: {verdict.citation_count})")

        response = note.to_response()
        response['computedRiskLevel'] = verdict.risk_level.value
        response['frequency'] = [day.to_dict() for day in frequency]
        return response

    def _frequency(self, pet_id: str) -> List[DayFrequency]:
        as_of = DateTimeUtils.today()
        days = DateTimeUtils.trailing_days(as_of, FREQUENCY_WINDOW_DAYS)
        start, _ = DateTimeUtils.day_bounds(days[-1])
        _, end = DateTimeUtils.day_bounds(as_of)
        poop = self.aggregator.fetch_poop_between(pet_id, start, end)
        return classify_frequency(poop, as_of)

    def breed_breakdown(self, pet_id: str, user_id: str, image_url: Optional[str] = None) -> BreedBreakdown:
        """품종 구성 추정. 결과는 저장하지 않습니다."""
        context = self.aggregator.fetch_pet_context(pet_id, user_id)
        payload = composer.compose_breed(context, image_url=image_url)
        content, _ = self.openai.complete(payload)
        return composer.parse_breed(content)

    def chat(self, pet_id: str, user_id: str, messages: List[Dict[str, Any]]) -> str:
        context = self.aggregator.fetch_pet_context(pet_id, user_id)
        digest = composer.summarize_context_for_chat(context)
        rag_snippets = self.aggregator.fetch_rag_snippets(pet_id)

        payload = composer.compose_chat(digest, rag_snippets, messages)
        reply, _ = self.openai.complete(payload)
        return reply
