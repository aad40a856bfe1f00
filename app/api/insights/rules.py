# app/api/insights/rules.py
"""
배변 위험 규칙표 (Rule Evaluator)

11개의 고정 규칙을 번호로 인용합니다. 각 규칙은 관찰 기록 하나에 대한 순수 술어(predicate)와
보호자용 원인 설명을 가집니다. 규칙 사이에 우선순위나 단락 평가는 없으며,
기록되지 않은 필드는 예외 없이 해당 규칙을 발동시키지 않을 뿐입니다.

평가 범위(scope):
- observation : 관찰 기록 하나로 로컬 평가 (1-7, 9)
- frequency   : 하루 배변 횟수로 escalation 단계에서 평가 (11)
- model       : 구조화된 필드가 없어 언어 모델이 메모/사진으로 판단 (8 이물질, 10 기름기)
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, FrozenSet

from app.models.care_logs import PoopLog, StoolColor, StoolConsistency, MoistureLevel

SCOPE_OBSERVATION = 'observation'
SCOPE_FREQUENCY = 'frequency'
SCOPE_MODEL = 'model'


@dataclass(frozen=True)
class Rule:
    rule_id: int
    title: str
    cause: str
    scope: str
    predicate: Optional[Callable[[PoopLog], bool]] = None

    def describe(self) -> str:
        return f"Rule {self.rule_id} – {self.title}: {self.cause}"


@dataclass(frozen=True)
class TriggeredRule:
    rule_id: int
    description: str

    @property
    def citation(self) -> str:
        return f"Rule {self.rule_id}"


@dataclass(frozen=True)
class ObservationFindings:
    """관찰 기록 하나에 대한 평가 결과."""
    observation: PoopLog
    triggered: FrozenSet[TriggeredRule]

    @property
    def rule_ids(self) -> List[int]:
        return sorted(rule.rule_id for rule in self.triggered)


def _too_hard(obs: PoopLog) -> bool:
    return obs.consistency is StoolConsistency.HARD or obs.moisture_level is MoistureLevel.DRY


def _too_soft(obs: PoopLog) -> bool:
    return (obs.consistency in (StoolConsistency.SOFT, StoolConsistency.DIARRHEA)
            or obs.moisture_level is MoistureLevel.WET)


def _color_in(*colors: StoolColor) -> Callable[[PoopLog], bool]:
    def predicate(obs: PoopLog) -> bool:
        return obs.color in colors
    return predicate


def _bloody(obs: PoopLog) -> bool:
    return obs.color is StoolColor.RED or obs.blood_present is True


def _mucus(obs: PoopLog) -> bool:
    return obs.mucus_present is True


RULES: List[Rule] = [
    Rule(1, "Consistency too hard/dry",
         "hard pellets or crumbly masses that signal dehydration, low fiber, constipation, or poor digestibility.",
         SCOPE_OBSERVATION, _too_hard),
    Rule(2, "Consistency too soft/unformed/watery",
         "mushy or pourable piles tied to diarrhea, infections, malabsorption, or IBD.",
         SCOPE_OBSERVATION, _too_soft),
    Rule(3, "Abnormal color (black/tarry)",
         "dark black or tar-like stool pointing to upper GI bleeding from ulcers, toxins, or ingested blood.",
         SCOPE_OBSERVATION, _color_in(StoolColor.BLACK)),
    Rule(4, "Abnormal color (white/grey/clay)",
         "pale or chalky stool indicating bile duct, liver, or pancreatic issues.",
         SCOPE_OBSERVATION, _color_in(StoolColor.WHITE, StoolColor.GREY, StoolColor.CLAY)),
    Rule(5, "Abnormal color (yellow/orange)",
         "bright yellow or orange tint suggesting rapid transit, biliary problems, or food intolerance.",
         SCOPE_OBSERVATION, _color_in(StoolColor.YELLOW, StoolColor.ORANGE)),
    Rule(6, "Abnormal color (green)",
         "distinct green color from bacterial overgrowth, rapid transit, or possible toxin ingestion.",
         SCOPE_OBSERVATION, _color_in(StoolColor.GREEN)),
    Rule(7, "Abnormal color (red/bloody)",
         "visible fresh blood or streaks highlighting lower GI bleeding, parasites, or anal gland problems.",
         SCOPE_OBSERVATION, _bloody),
    Rule(8, "Visible content abnormalities",
         "undigested food, worms, grass, foreign objects, or excess hair implying parasites, pica, "
         "poor digestion, or blockage.",
         SCOPE_MODEL),
    Rule(9, "Excessive mucus coating",
         "slimy or jelly-like film that indicates colonic inflammation, allergies, stress, or infection.",
         SCOPE_OBSERVATION, _mucus),
    Rule(10, "Greasy/oily appearance",
         "shiny residue or oily puddles signalling fat malabsorption, pancreatic insufficiency, "
         "or very high-fat diets.",
         SCOPE_MODEL),
    Rule(11, "Abnormal frequency/volume",
         "no bowel movements or more than three per day, very small/hard outputs, or excessively "
         "large/soggy piles pointing to dietary imbalance, stress, maldigestion, or GI disease.",
         SCOPE_FREQUENCY),
]

RULES_BY_ID: Dict[int, Rule] = {rule.rule_id: rule for rule in RULES}

HEALTHY_BASELINE = (
    "Healthy stool baseline: medium to dark brown, firm yet moist, easy to pick up with minimal "
    "residue, and 1–3 bowel movements per day."
)


def triggered(rule_id: int) -> TriggeredRule:
    rule = RULES_BY_ID[rule_id]
    return TriggeredRule(rule_id=rule.rule_id, description=rule.describe())


def evaluate(observation: PoopLog) -> FrozenSet[TriggeredRule]:
    """관찰 기록 하나에 로컬 평가 가능한 모든 규칙을 독립적으로 적용합니다."""
    return frozenset(
        triggered(rule.rule_id)
        for rule in RULES
        if rule.scope == SCOPE_OBSERVATION and rule.predicate(observation)
    )


def evaluate_batch(observations: Iterable[PoopLog]) -> List[ObservationFindings]:
    return [ObservationFindings(observation=obs, triggered=evaluate(obs)) for obs in observations]


def catalogue_text() -> str:
    """모델에 전달할 규칙 설명문 (술어 로직은 포함하지 않음)."""
    lines = [HEALTHY_BASELINE, ""]
    lines.extend(rule.describe() for rule in RULES)
    return "\n".join(lines)


def model_delegated_rules() -> List[Rule]:
    return [rule for rule in RULES if rule.scope == SCOPE_MODEL]
