# app/api/insights/test_rules.py
from app.api.insights import rules
from app.models.care_logs import PoopLog, StoolColor, StoolConsistency, MoistureLevel


def _ids(observation):
    return sorted(rule.rule_id for rule in rules.evaluate(observation))


def test_healthy_stool_triggers_nothing():
    obs = PoopLog(color=StoolColor.BROWN, consistency=StoolConsistency.REGULAR,
                  moisture_level=MoistureLevel.NORMAL, blood_present=False, mucus_present=False)
    assert _ids(obs) == []


def test_unrecorded_fields_never_trigger():
    assert _ids(PoopLog()) == []


def test_black_stool_triggers_only_rule_3():
    assert _ids(PoopLog(color=StoolColor.BLACK)) == [3]


def test_blood_present_triggers_rule_7_without_red_color():
    assert _ids(PoopLog(color=StoolColor.BROWN, blood_present=True)) == [7]
    assert _ids(PoopLog(color=StoolColor.RED)) == [7]


def test_consistency_and_moisture():
    assert _ids(PoopLog(consistency=StoolConsistency.HARD)) == [1]
    assert _ids(PoopLog(moisture_level=MoistureLevel.DRY)) == [1]
    assert _ids(PoopLog(consistency=StoolConsistency.DIARRHEA)) == [2]
    assert _ids(PoopLog(moisture_level=MoistureLevel.WET)) == [2]
    assert _ids(PoopLog(consistency=StoolConsistency.STICKY)) == []


def test_color_groups():
    assert _ids(PoopLog(color=StoolColor.CLAY)) == [4]
    assert _ids(PoopLog(color=StoolColor.GREY)) == [4]
    assert _ids(PoopLog(color=StoolColor.ORANGE)) == [5]
    assert _ids(PoopLog(color=StoolColor.GREEN)) == [6]


def test_rules_apply_independently():
    """하나의 기록이 여러 규칙을 동시에 발동시킬 수 있습니다."""
    obs = PoopLog(color=StoolColor.RED, consistency=StoolConsistency.DIARRHEA, mucus_present=True)
    assert _ids(obs) == [2, 7, 9]


def test_evaluate_is_deterministic():
    obs = PoopLog(color=StoolColor.GREEN, consistency=StoolConsistency.SOFT)
    assert rules.evaluate(obs) == rules.evaluate(obs)


def test_from_dict_unknown_enum_value_is_ignored():
    obs = PoopLog.from_dict({'color': 'purple', 'consistency': 'HARD'}, log_id='p1')
    assert obs.color is None
    assert _ids(obs) == [1]


def test_catalogue_lists_all_rules():
    text = rules.catalogue_text()
    for rule_id in range(1, 12):
        assert f"Rule {rule_id} " in text
    assert rules.HEALTHY_BASELINE in text


def test_model_delegated_rules():
    assert [rule.rule_id for rule in rules.model_delegated_rules()] == [8, 10]
    assert rules.RULES_BY_ID[11].scope == rules.SCOPE_FREQUENCY


def test_hard_and_wet_trigger_together():
    obs = PoopLog(consistency=StoolConsistency.HARD, moisture_level=MoistureLevel.WET)
    assert _ids(obs) == [1, 2]


def test_from_dict_scalar_behaviors_are_ignored():
    obs = PoopLog.from_dict({'undesirable_behaviors': True, 'color': 'black'}, log_id='p1')
    assert obs.undesirable_behaviors == []
    assert _ids(obs) == [3]


def test_from_dict_string_flags_still_trigger():
    assert _ids(PoopLog.from_dict({'blood_present': 'true'}, log_id='p1')) == [7]
    assert _ids(PoopLog.from_dict({'mucus_present': 'TRUE'}, log_id='p2')) == [9]
    assert _ids(PoopLog.from_dict({'blood_present': 'false', 'mucus_present': 0}, log_id='p3')) == []

    unknown = PoopLog.from_dict({'blood_present': 'maybe'}, log_id='p4')
    assert unknown.blood_present is None
