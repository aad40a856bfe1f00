# app/api/insights/escalation.py
"""
Escalation Policy

배치 전체의 규칙 인용 수로 위험 등급을 결정하고, 배변 빈도(규칙 11)는 따로 분류합니다.
빈도 신호는 대시보드 추세에 쓰이며 위험 등급에는 합산하지 않습니다.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Sequence

from app.models.care_logs import PoopLog
from app.models.health_note import RiskLevel
from app.utils.datetime_utils import DateTimeUtils
from .rules import ObservationFindings, RULES_BY_ID

URGENT_THRESHOLD = 3
FREQUENCY_WINDOW_DAYS = 7
MIN_DAILY_STOOLS = 1
MAX_DAILY_STOOLS = 3

STATUS_OK = 'ok'
STATUS_WATCH = 'watch'
STATUS_ALERT = 'alert'

_STATUS_ORDER = {STATUS_OK: 0, STATUS_WATCH: 1, STATUS_ALERT: 2}


@dataclass(frozen=True)
class DayFrequency:
    day: date
    count: int
    status: str

    @property
    def cites_rule_11(self) -> bool:
        return self.status != STATUS_OK

    def to_dict(self) -> dict:
        payload = {'date': self.day.isoformat(), 'count': self.count, 'status': self.status}
        if self.cites_rule_11:
            payload['rule'] = RULES_BY_ID[11].describe()
        return payload


@dataclass(frozen=True)
class EscalationVerdict:
    risk_level: RiskLevel
    must_use_urgent_language: bool
    citation_count: int
    citations: List[str] = field(default_factory=list)


def escalate(findings: Iterable[ObservationFindings]) -> EscalationVerdict:
    """
    관찰 기록별 발동 규칙을 합쳐 위험 등급을 결정합니다.

    인용 수는 (관찰 기록, 규칙) 쌍마다 한 번 셉니다.
    - 3건 이상, 또는 한 기록에서 3개 이상 동시 발동 -> see_vet + 긴급 문구
    - 1건 이상 -> watch
    - 0건 -> normal
    """
    citations: List[str] = []
    single_observation_urgent = False

    for index, finding in enumerate(findings, start=1):
        rule_ids = finding.rule_ids
        if len(rule_ids) >= URGENT_THRESHOLD:
            single_observation_urgent = True
        label = finding.observation.log_id or f"log #{index}"
        citations.extend(f"Rule {rule_id} triggered on {label}" for rule_id in rule_ids)

    count = len(citations)
    if count >= URGENT_THRESHOLD or single_observation_urgent:
        return EscalationVerdict(RiskLevel.SEE_VET, True, count, citations)
    if count >= 1:
        return EscalationVerdict(RiskLevel.WATCH, False, count, citations)
    return EscalationVerdict(RiskLevel.NORMAL, False, count, citations)


def classify_day(count: int) -> str:
    """하루 배변 횟수 분류: 0회 alert, 3회 초과 watch, 그 외 ok."""
    if count < MIN_DAILY_STOOLS:
        return STATUS_ALERT
    if count > MAX_DAILY_STOOLS:
        return STATUS_WATCH
    return STATUS_OK


def classify_frequency(observations: Sequence[PoopLog], as_of: date,
                       days: int = FREQUENCY_WINDOW_DAYS) -> List[DayFrequency]:
    """as_of를 포함한 최근 days일 각각의 배변 횟수를 분류합니다 (최신 날짜 먼저)."""
    counts = {}
    for obs in observations:
        if obs.logged_at is None:
            continue
        logged_day = obs.logged_at.date()
        counts[logged_day] = counts.get(logged_day, 0) + 1

    return [
        DayFrequency(day=day, count=counts.get(day, 0), status=classify_day(counts.get(day, 0)))
        for day in DateTimeUtils.trailing_days(as_of, days)
    ]


def worst_status(statuses: Iterable[str]) -> str:
    return max(statuses, key=lambda status: _STATUS_ORDER[status], default=STATUS_OK)
