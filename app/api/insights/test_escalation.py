# app/api/insights/test_escalation.py
from datetime import date, datetime, timezone

from app.api.insights.escalation import (
    escalate, classify_day, classify_frequency, worst_status,
    STATUS_OK, STATUS_WATCH, STATUS_ALERT
)
from app.api.insights.rules import evaluate_batch
from app.models.care_logs import PoopLog, StoolColor, StoolConsistency
from app.models.health_note import RiskLevel


def _at(day, hour=9):
    return datetime(2024, 5, day, hour, tzinfo=timezone.utc)


def test_no_citations_is_normal():
    verdict = escalate(evaluate_batch([PoopLog(log_id='a', color=StoolColor.BROWN)]))
    assert verdict.risk_level is RiskLevel.NORMAL
    assert verdict.citation_count == 0
    assert not verdict.must_use_urgent_language


def test_single_black_stool_is_watch():
    verdict = escalate(evaluate_batch([PoopLog(log_id='a', color=StoolColor.BLACK)]))
    assert verdict.risk_level is RiskLevel.WATCH
    assert verdict.citation_count == 1
    assert verdict.citations == ["Rule 3 triggered on a"]


def test_three_citations_across_batch_requires_urgent_language():
    batch = [
        PoopLog(log_id='a', consistency=StoolConsistency.DIARRHEA),
        PoopLog(log_id='b', color=StoolColor.GREEN),
        PoopLog(log_id='c', color=StoolColor.BROWN, blood_present=True),
    ]
    verdict = escalate(evaluate_batch(batch))
    assert verdict.citation_count == 3
    assert verdict.risk_level is RiskLevel.SEE_VET
    assert verdict.must_use_urgent_language


def test_same_rule_on_two_observations_counts_twice():
    batch = [PoopLog(log_id='a', color=StoolColor.GREEN), PoopLog(log_id='b', color=StoolColor.GREEN)]
    verdict = escalate(evaluate_batch(batch))
    assert verdict.citation_count == 2
    assert verdict.risk_level is RiskLevel.WATCH


def test_three_rules_on_one_observation_is_see_vet():
    obs = PoopLog(log_id='a', color=StoolColor.RED, consistency=StoolConsistency.DIARRHEA, mucus_present=True)
    verdict = escalate(evaluate_batch([obs]))
    assert verdict.risk_level is RiskLevel.SEE_VET
    assert verdict.must_use_urgent_language


def test_classify_day_thresholds():
    assert classify_day(0) == STATUS_ALERT
    assert classify_day(1) == STATUS_OK
    assert classify_day(3) == STATUS_OK
    assert classify_day(4) == STATUS_WATCH


def test_classify_frequency_covers_seven_days_newest_first():
    logs = [PoopLog(logged_at=_at(10, hour)) for hour in (6, 10, 14, 18)]
    logs.append(PoopLog(logged_at=_at(9)))
    logs.append(PoopLog(logged_at=None))

    days = classify_frequency(logs, date(2024, 5, 10))

    assert len(days) == 7
    assert days[0].day == date(2024, 5, 10)
    assert (days[0].count, days[0].status) == (4, STATUS_WATCH)
    assert (days[1].count, days[1].status) == (1, STATUS_OK)
    assert days[2].status == STATUS_ALERT
    assert days[2].to_dict()['rule'].startswith("Rule 11")
    assert 'rule' not in days[1].to_dict()


def test_worst_status():
    assert worst_status([STATUS_OK, STATUS_WATCH]) == STATUS_WATCH
    assert worst_status([STATUS_WATCH, STATUS_ALERT, STATUS_OK]) == STATUS_ALERT
    assert worst_status([]) == STATUS_OK


def test_unlabeled_observations_are_numbered_by_position():
    batch = [PoopLog(color=StoolColor.BROWN), PoopLog(color=StoolColor.GREEN, mucus_present=True)]
    verdict = escalate(evaluate_batch(batch))
    assert verdict.citations == ["Rule 6 triggered on log #2", "Rule 9 triggered on log #2"]


def test_classify_frequency_without_logs_is_all_alert():
    days = classify_frequency([], date(2024, 5, 10))
    assert [day.status for day in days] == [STATUS_ALERT] * 7
