# app/api/dashboard/scoring.py
"""
대시보드 점수 계산 (wellness radar / poop trend)

외부 호출 없이 이미 조회된 로그만으로 계산하며 결과는 저장하지 않습니다.
"""

import math
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from app.api.insights.escalation import classify_day, worst_status, STATUS_OK, STATUS_WATCH, STATUS_ALERT
from app.models.care_logs import PoopLog, StoolColor, StoolConsistency
from app.models.health_note import HealthNote, RiskLevel
from app.services.log_aggregator import LogWindow
from app.utils.datetime_utils import DateTimeUtils

MIN_SCORE = 10
MAX_SCORE = 100

MEALS_PER_DAY_TARGET = 3
SUPPLEMENT_MULTIPLIER = 120
DIGESTION_BASE = 95
DIGESTION_EMPTY = 55
GROWTH_DEFAULT = 70
GROWTH_PENALTY_PER_KG = 25

MOOD_BY_RISK = {
    RiskLevel.SEE_VET: 35,
    RiskLevel.WATCH: 65,
    RiskLevel.NORMAL: 95,
}
MOOD_NO_NOTE = 60
MOOD_UNKNOWN_RISK = 95

TREND_SEGMENT_DAYS = 3
LOOK_WINDOW_DAYS = 7

_ALERT_COLORS = {StoolColor.BLACK, StoolColor.RED}
_UNUSUAL_COLORS = {
    StoolColor.GREEN, StoolColor.YELLOW, StoolColor.ORANGE,
    StoolColor.WHITE, StoolColor.GREY, StoolColor.CLAY,
}

LOOK_MESSAGES = {
    STATUS_ALERT: "Recent stool logs contain high-risk markers (blood, tarry, or multiple undesirable behaviors).",
    STATUS_WATCH: "Some logs show softer texture or unusual colors. Keep monitoring hydration and diet.",
    STATUS_OK: "Looks steady. Recent entries stay within healthy color and texture ranges.",
}
FREQUENCY_MESSAGES = {
    STATUS_ALERT: "Log consistency suggests very low or no bowel movements. Check hydration and fiber.",
    STATUS_WATCH: "Stool frequency hit the edges of the 1-3 logs/day range. Keep an eye on routines.",
    STATUS_OK: "Average stool frequency is within the target 1-3 per day.",
}


def clamp_score(value: Optional[float]) -> int:
    """반올림(0.5는 올림) 후 [10, 100] 범위로 제한합니다."""
    rounded = math.floor((value or 0) + 0.5)
    return max(MIN_SCORE, min(MAX_SCORE, rounded))


def digestion_penalty(poop_logs: Sequence[PoopLog]) -> int:
    penalty = 0
    for log in poop_logs:
        if log.color in _ALERT_COLORS:
            penalty += 30
        elif log.consistency in (StoolConsistency.DIARRHEA, StoolConsistency.SOFT):
            penalty += 20
        elif log.consistency is StoolConsistency.HARD:
            penalty += 10
    return penalty


def mood_score(latest_note: Optional[HealthNote]) -> int:
    if latest_note is None:
        return clamp_score(MOOD_NO_NOTE)
    return clamp_score(MOOD_BY_RISK.get(latest_note.risk_level, MOOD_UNKNOWN_RISK))


def growth_score(measurements) -> int:
    """가장 최근 두 측정의 체중 차이로 계산합니다. 두 측정 모두 체중이 있어야 합니다."""
    if len(measurements) < 2 or not measurements[0].weight_kg or not measurements[1].weight_kg:
        return clamp_score(GROWTH_DEFAULT)
    delta = abs(measurements[0].weight_kg - measurements[1].weight_kg)
    return clamp_score(100 - delta * GROWTH_PENALTY_PER_KG)


def compute_wellness_scores(window: LogWindow, range_days: int) -> Dict[str, int]:
    """
    다섯 가지 wellness 점수를 계산합니다.

    Args:
        window: 조회 기간의 로그 (measurements는 최신순 최근 2건)
        range_days: 기간 일 수 (daily=1, monthly=30)

    Returns:
        {'nutrition', 'digestion', 'supplements', 'mood', 'growth'} -> 10~100 정수
    """
    range_days = max(1, range_days)

    if window.poop:
        digestion = clamp_score(DIGESTION_BASE - digestion_penalty(window.poop))
    else:
        digestion = clamp_score(DIGESTION_EMPTY)

    return {
        'nutrition': clamp_score(len(window.food) / range_days / MEALS_PER_DAY_TARGET * 100),
        'digestion': digestion,
        'supplements': clamp_score(len(window.supplements) / range_days * SUPPLEMENT_MULTIPLIER),
        'mood': mood_score(window.latest_note),
        'growth': growth_score(window.measurements),
    }


def _is_alert_look(log: PoopLog) -> bool:
    return bool(log.blood_present) or log.color in _ALERT_COLORS or log.has_behavior_flags()


def _is_watch_look(log: PoopLog) -> bool:
    return (log.consistency is StoolConsistency.DIARRHEA
            or bool(log.mucus_present)
            or log.color in _UNUSUAL_COLORS)


def look_status(poop_logs: Sequence[PoopLog], as_of: date) -> str:
    recent = [
        log for log in poop_logs
        if log.logged_at is not None
        and DateTimeUtils.calendar_days_between(as_of, log.logged_at) <= LOOK_WINDOW_DAYS
    ]
    if any(_is_alert_look(log) for log in recent):
        return STATUS_ALERT
    if any(_is_watch_look(log) for log in recent):
        return STATUS_WATCH
    return STATUS_OK


def frequency_segments(poop_logs: Sequence[PoopLog], as_of: date) -> List[Dict[str, Any]]:
    counts: Dict[date, int] = {}
    for log in poop_logs:
        if log.logged_at is None:
            continue
        day = log.logged_at.date()
        counts[day] = counts.get(day, 0) + 1

    segments = []
    for day in DateTimeUtils.trailing_days(as_of, TREND_SEGMENT_DAYS):
        count = counts.get(day, 0)
        segments.append({
            'date': day.isoformat(),
            'label': day.strftime('%a'),
            'count': count,
            'status': classify_day(count),
        })
    return segments


def compute_poop_trend(poop_logs: Sequence[PoopLog], as_of: date) -> Dict[str, Any]:
    """
    최근 3일 배변 빈도와 최근 7일 배변 모양 상태를 계산합니다.
    """
    look = look_status(poop_logs, as_of)
    segments = frequency_segments(poop_logs, as_of)
    freq = worst_status(segment['status'] for segment in segments)
    average = sum(segment['count'] for segment in segments) / (len(segments) or 1)

    return {
        'lookStatus': look,
        'lookMessage': LOOK_MESSAGES[look],
        'freqStatus': freq,
        'freqMessage': FREQUENCY_MESSAGES[freq],
        'freqSegments': segments,
        'average': round(average, 1),
    }
