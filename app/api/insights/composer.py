# app/api/insights/composer.py
"""
Insight Composer

집계된 컨텍스트와 로컬 규칙 평가 결과를 언어 모델 요청으로 만들고,
모델 응답을 검증된 결과 객체로 파싱합니다.

- compose / parse              : 배변 건강 트리아지 (JSON, 결과는 health_notes에 저장)
- compose_breed / parse_breed  : 품종 구성 추정 (JSON, 저장하지 않음)
- compose_chat                 : 다중 턴 대화 (자유 텍스트)

위험 등급은 Escalation Policy가 로컬에서 계산하고, 모델은 그 결과를 설명하는 문장을 씁니다.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from marshmallow import ValidationError

from app.core.exceptions import ParseError
from app.models.health_note import HealthNote, BreedBreakdown, BreedShare, RiskLevel
from app.models.pet import PetContext
from app.utils.datetime_utils import DateTimeUtils
from .escalation import EscalationVerdict
from .rules import ObservationFindings, catalogue_text, model_delegated_rules
from .schemas import TriageResponseSchema, BreedResponseSchema

logger = logging.getLogger(__name__)

SAFETY_SENTENCE = (
    "Consult a veterinarian for persistent or severe changes, especially with blood, "
    "black color, or sudden onset."
)
URGENT_PHRASE = "urgent veterinary attention"
URGENT_SENTENCE = "Urgent veterinary attention recommended."

MAX_RECENT_LOGS = 3
MAX_RAG_SNIPPETS = 5
MAX_CHAT_MESSAGE_CHARS = 800
SUMMARY_WORD_LIMIT = 80
BREED_PERCENT_TOLERANCE = 10

TRIAGE_TEMPERATURE = 0.2
BREED_TEMPERATURE = 0.4
CHAT_TEMPERATURE = 0.35


@dataclass
class PromptPayload:
    """OpenAI chat.completions 요청 한 건."""
    messages: List[Dict[str, Any]]
    temperature: float
    json_mode: bool = True
    metadata: Dict[str, Any] = field(default_factory=dict)


def _or(value, fallback: str) -> str:
    if value is None or value == '':
        return fallback
    return str(value)


def _yes_no(flag: Optional[bool]) -> str:
    if flag is None:
        return 'n/a'
    return 'yes' if flag else 'no'


def _enum_value(value) -> str:
    return value.value if value is not None else 'n/a'


def _when(logged_at) -> str:
    return DateTimeUtils.to_iso_string(logged_at) if logged_at else 'unknown time'


def _render_food(context: PetContext) -> str:
    lines = [
        f"{_or(log.name, 'meal')} ({_or(log.amount_grams, 0)}g) at {_when(log.logged_at)}"
        for log in context.food[:MAX_RECENT_LOGS]
    ]
    return "\n".join(lines) or "No meals logged."


def _render_poop(context: PetContext) -> str:
    lines = []
    for log in context.poop[:MAX_RECENT_LOGS]:
        line = (
            f"{_enum_value(log.color)}/{_enum_value(log.consistency)}"
            f" • moisture: {_enum_value(log.moisture_level)}"
            f" • blood: {_yes_no(log.blood_present)}"
            f" • mucus: {_yes_no(log.mucus_present)}"
            f" • smell: {_or(log.smell_level, 'n/a')}"
        )
        if log.undesirable_behaviors:
            line += f" • behavior: {', '.join(b.value for b in log.undesirable_behaviors)}"
            if log.undesirable_behavior_notes:
                line += f" ({log.undesirable_behavior_notes})"
        if log.notes:
            line += f" • notes: {log.notes}"
        line += f" on {_when(log.logged_at)}"
        lines.append(line)
    return "\n".join(lines) or "No poop logs yet."


def _render_supplements(context: PetContext) -> str:
    lines = [
        f"{_or(log.name, 'supplement')} {_or(log.dosage, '')} ({_or(log.frequency, '')})"
        for log in context.supplements[:MAX_RECENT_LOGS]
    ]
    return "\n".join(lines) or "None logged."


def _render_findings(findings: Sequence[ObservationFindings], verdict: EscalationVerdict) -> str:
    lines = []
    for index, finding in enumerate(findings, start=1):
        label = finding.observation.log_id or f"log #{index}"
        if finding.rule_ids:
            cited = ", ".join(f"Rule {rule_id}" for rule_id in finding.rule_ids)
            lines.append(f"- {label}: {cited}")
        else:
            lines.append(f"- {label}: no structured rule triggered")
    if not lines:
        lines.append("- No stool observations to evaluate.")
    lines.append(f"Computed risk level: {verdict.risk_level.value} ({verdict.citation_count} rule citation(s)).")
    if verdict.must_use_urgent_language:
        lines.append(f"Escalation: three or more rule citations, state \"{URGENT_SENTENCE}\"")
    return "\n".join(lines)


def compose(context: PetContext, rag_snippets: Sequence[str], findings: Sequence[ObservationFindings],
            verdict: EscalationVerdict, image_url: Optional[str] = None) -> PromptPayload:
    """트리아지 요청 메시지를 만듭니다. 같은 입력에는 항상 같은 문서를 만듭니다."""
    pet = context.pet
    snippets = list(rag_snippets)[:MAX_RAG_SNIPPETS]
    rag = "\n".join(f"- {chunk}" for chunk in snippets) if snippets else "None recorded."
    delegated = ", ".join(f"Rule {rule.rule_id}" for rule in model_delegated_rules())

    prompt = f"""You are the Soycraft pet health assistant.

Owner: {_or(pet.owner_name, 'Owner')}
Pet: {pet.name} ({_or(pet.species, 'unknown species')}, {_or(pet.breed, 'unknown breed')})
Age: {_or(pet.date_of_birth, 'unknown')}
Medical history: {_or(pet.medical_history, 'not provided')}
Allergies: {_or(pet.allergies, 'not provided')}

Recent food intake:
{_render_food(context)}

Recent poop observations:
{_render_poop(context)}

Supplements provided:
{_render_supplements(context)}

Knowledge base:
{rag}

General veterinary alert rules (cite triggered rule numbers):
{catalogue_text()}

Locally evaluated findings (authoritative, do not contradict):
{_render_findings(findings, verdict)}

Instructions:
- Explain every triggered rule listed above in recommendations (e.g., "Rule 2 watery stool triggered") with likely causes from the rule description.
- {delegated} have no structured field; judge them only from notes or the photo and cite them if you see evidence.
- Set riskLevel to the computed risk level unless notes or the photo show evidence for a more severe level.
- When three or more rules trigger together, explicitly state "urgent veterinary attention recommended" and set riskLevel to see_vet.
- Always include this sentence verbatim somewhere in recommendations or ownerMessage: "{SAFETY_SENTENCE}"
- Keep summary under {SUMMARY_WORD_LIMIT} words. Return JSON with keys summary, recommendations, riskLevel (normal|watch|see_vet) and ownerMessage."""

    messages: List[Dict[str, Any]] = [
        {"role": "system", "content": "You are a concise pet health triage assistant."},
        {"role": "user", "content": prompt},
    ]
    if image_url:
        messages.append({
            "role": "user",
            "content": [
                {"type": "text", "text": "Analyze the attached stool photo for additional signals."},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        })

    return PromptPayload(messages=messages, temperature=TRIAGE_TEMPERATURE,
                         metadata={"kind": "triage", "computed_risk": verdict.risk_level.value})


def _load_json(raw: str) -> Dict[str, Any]:
    if raw is None or not str(raw).strip():
        raise ParseError("No response from language model")
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Model response is not valid JSON: {e}")
    if not isinstance(payload, dict):
        raise ParseError("Model response must be a JSON object")
    return payload


def parse(raw: str) -> HealthNote:
    """
    트리아지 응답을 HealthNote로 파싱합니다.
    키 누락이나 허용되지 않은 riskLevel은 기본값으로 채우지 않고 ParseError로 실패합니다.
    """
    payload = _load_json(raw)
    try:
        data = TriageResponseSchema().load(payload)
    except ValidationError as err:
        logger.warning(f"트리아지 응답 검증 실패: {err.messages}")
        raise ParseError("Model response is missing required fields or has invalid values",
                         details=err.messages)

    return HealthNote(
        summary=data['summary'],
        recommendations=data['recommendations'],
        risk_level=RiskLevel(data['riskLevel']),
        owner_message=data['ownerMessage'],
    )


def reconcile(note: HealthNote, verdict: EscalationVerdict) -> HealthNote:
    """
    로컬 판정을 모델 결과에 반영합니다.
    위험 등급은 둘 중 더 심각한 쪽을 따르고, 긴급 문구가 필요하면 보호자 메시지 앞에 붙입니다.
    """
    note.risk_level = RiskLevel.most_severe(note.risk_level, verdict.risk_level)
    if verdict.must_use_urgent_language:
        text = f"{note.recommendations} {note.owner_message}".lower()
        if URGENT_PHRASE not in text:
            note.owner_message = f"{URGENT_SENTENCE} {note.owner_message}".strip()
    return note


def compose_breed(context: PetContext, image_url: Optional[str] = None) -> PromptPayload:
    pet = context.pet
    prompt = f"""You are a playful but precise veterinary genetic counselor.

Pet profile:
- Name: {pet.name}
- Species: {_or(pet.species, 'unknown')}
- Owner reported breed: {_or(pet.breed, 'unknown')}
- Allergies: {_or(pet.allergies, 'not provided')}
- Medical flags: {_or(pet.medical_history, 'none logged')}

Return JSON with keys breakdown (array of {{label, percentage, traits}}),
originStory (2 short sentences about notable mixes and what they imply for care),
and watchouts (array of concise care tips referencing allergies/poop trends when possible).
Percentages must sum to ~100. If no image supplied, lean on metadata but stay transparent about uncertainty."""

    messages: List[Dict[str, Any]] = [
        {"role": "system", "content": "You turn photos and metadata into estimated breed mix."},
        {"role": "user", "content": prompt},
    ]
    visual_url = image_url or pet.photo_url
    if visual_url:
        messages.append({
            "role": "user",
            "content": [
                {"type": "text", "text": "Here is the most recent pet photo. Incorporate clear visual cues if visible."},
                {"type": "image_url", "image_url": {"url": visual_url}},
            ],
        })

    return PromptPayload(messages=messages, temperature=BREED_TEMPERATURE, metadata={"kind": "breed"})


def parse_breed(raw: str) -> BreedBreakdown:
    payload = _load_json(raw)
    try:
        data = BreedResponseSchema().load(payload)
    except ValidationError as err:
        logger.warning(f"품종 응답 검증 실패: {err.messages}")
        raise ParseError("Breed response is missing required fields or has invalid values",
                         details=err.messages)

    shares = [BreedShare(label=item['label'], percentage=item['percentage'], traits=item.get('traits'))
              for item in data['breakdown']]
    total = sum(share.percentage for share in shares)
    if abs(total - 100) > BREED_PERCENT_TOLERANCE:
        logger.warning(f"품종 비율 합계가 100에서 벗어났습니다: {total}")

    return BreedBreakdown(breakdown=shares, origin_story=data['originStory'], watchouts=data['watchouts'])


def summarize_context_for_chat(context: PetContext) -> str:
    """대화 시스템 프롬프트에 넣을 한 줄 요약."""
    pet = context.pet
    breed = f", {pet.breed}" if pet.breed else ""
    basic = (f"{pet.name} ({_or(pet.species, 'pet')}{breed}) age {_or(pet.date_of_birth, 'unknown')} "
             f"weighing {_or(pet.weight, 'n/a')}kg.")

    if context.food:
        meals = "Meals logged: " + "; ".join(
            f"{_or(meal.name, 'meal')} {_or(meal.amount_grams, '?')}g" for meal in context.food)
    else:
        meals = "No meals logged recently."

    if context.poop:
        poop_line = "Digestive notes: " + ", ".join(
            f"{_enum_value(log.consistency)} {_enum_value(log.color) if log.color else ''}".strip()
            for log in context.poop)
    else:
        poop_line = "No poop entries this week."

    if context.supplements:
        supplement_line = "Supplements: " + "; ".join(
            f"{_or(supp.name, 'supplement')} {_or(supp.dosage, '')}".strip() for supp in context.supplements)
    else:
        supplement_line = "No supplements logged."

    if context.notes and context.notes[0].summary:
        recent_insight = f"Latest AI note: {context.notes[0].summary}"
    else:
        recent_insight = "No AI notes yet."

    return f"{basic} {meals} {poop_line} {supplement_line} {recent_insight}"


def sanitize_chat_messages(messages: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
    """역할을 user/assistant로 정규화하고 내용은 800자로 자릅니다."""
    return [
        {
            "role": "assistant" if message.get("role") == "assistant" else "user",
            "content": str(message.get("content") or "")[:MAX_CHAT_MESSAGE_CHARS],
        }
        for message in messages
    ]


def compose_chat(digest: str, rag_snippets: Sequence[str],
                 messages: Sequence[Dict[str, Any]]) -> PromptPayload:
    system = (
        "You are Soycraft's AI exchange. Blend recent care data with actionable coaching.\n"
        f"Context digest: {digest}\n"
        "RAG snippets:\n"
        + "\n".join(list(rag_snippets)[:MAX_RAG_SNIPPETS])
        + f"\nKeep replies under {SUMMARY_WORD_LIMIT} words and focus on next best steps."
    )
    return PromptPayload(
        messages=[{"role": "system", "content": system}, *sanitize_chat_messages(messages)],
        temperature=CHAT_TEMPERATURE,
        json_mode=False,
        metadata={"kind": "chat"},
    )


def split_findings(findings: Sequence[ObservationFindings]) -> Tuple[List[str], List[Dict[str, Any]]]:
    """저장용: 인용 목록과 관찰 기록 스냅샷."""
    citations = []
    snapshots = []
    for finding in findings:
        citations.extend(f"Rule {rule_id}" for rule_id in finding.rule_ids)
        snapshot = finding.observation.to_snapshot()
        snapshot['triggered_rules'] = finding.rule_ids
        snapshots.append(snapshot)
    return sorted(set(citations), key=lambda c: int(c.split()[1])), snapshots
