import logging
import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from types import MappingProxyType
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from gradecalc.config import CalculatorSettings, GRADE_SCHEMES, WEIGHT_FORMATS

logger = logging.getLogger(__name__)


# ------------------------
# Grading tables
# ------------------------
GRADING_SCALE = MappingProxyType({
    "A+": 100.0, "A": 95.0, "A-": 90.0,
    "B+": 87.0, "B": 83.0, "B-": 80.0,
    "C+": 77.0, "C": 73.0, "C-": 70.0,
    "D+": 67.0, "D": 65.0, "D-": 60.0,
    "F": 0.0,
})

LETTER_BOUNDARIES: Tuple[Tuple[float, str], ...] = (
    (97.0, "A+"),
    (93.0, "A"),
    (90.0, "A-"),
    (87.0, "B+"),
    (83.0, "B"),
    (80.0, "B-"),
    (77.0, "C+"),
    (73.0, "C"),
    (70.0, "C-"),
    (67.0, "D+"),
    (65.0, "D"),
    (60.0, "D-"),
    (0.0, "F"),
)

UNNAMED_ROW = "unnamed row"


# ------------------------
# Errors
# ------------------------
class GradeCalcError(ValueError):
    """Base class for recoverable calculation errors shown back to the user."""

    message = "Unable to calculate a grade."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class EmptyInput(GradeCalcError):
    message = "Please enter at least one grade and weight."


class InvalidEntry(GradeCalcError):
    def __init__(self, label: str):
        self.label = label or UNNAMED_ROW
        super().__init__(f'Invalid grade or weight for "{self.label}".')


class WeightOverflow(GradeCalcError):
    message = "Total weight cannot exceed 100%."


class ZeroWeight(GradeCalcError):
    message = "Total weight cannot be zero."


class InvalidWeight(GradeCalcError):
    message = "Final exam weight must be between 0 and 100."


# ------------------------
# Data
# ------------------------
class GradeEntry(NamedTuple):
    assignment: str = ""
    grade: str = ""
    weight: str = ""


class AggregationResult(NamedTuple):
    average: float
    letter: str
    entries: Tuple[GradeEntry, ...]
    weighted_sum: float
    total_weight: float


class GoalProjection(NamedTuple):
    required: float
    attainable: bool


# ------------------------
# Core logic
# ------------------------
def round_1dp_half_up(x: float) -> float:
    if not math.isfinite(x):
        return x
    d = Decimal(str(x))
    with localcontext() as ctx:
        # enough digits for the integer part plus one decimal
        ctx.prec = max(ctx.prec, d.adjusted() + 3)
        return float(d.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def parse_number(token) -> Optional[float]:
    if token is None:
        return None
    text = str(token).strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_grade(token, scheme: str = "letters") -> Optional[float]:
    """
    Convert a grade token into a numeric score.

    "letters" accepts only keys of GRADING_SCALE (case-insensitive).
    "mixed" tries a letter first and falls back to a plain number.
    Out-of-range numbers are returned unchanged; range checks happen later.
    """
    if scheme not in GRADE_SCHEMES:
        raise ValueError(f"Unknown grade scheme {scheme!r}; expected one of {GRADE_SCHEMES}.")

    normalised = ("" if token is None else str(token)).strip().upper()
    if not normalised:
        return None

    if normalised in GRADING_SCALE:
        return GRADING_SCALE[normalised]
    if scheme == "letters":
        return None
    return parse_number(normalised)


def letter_for(score: float) -> str:
    for threshold, letter in LETTER_BOUNDARIES:
        if score >= threshold:
            return letter
    return LETTER_BOUNDARIES[-1][1]


def _is_blank(token) -> bool:
    return token is None or not str(token).strip()


def usable_entries(entries: Sequence[GradeEntry]) -> List[GradeEntry]:
    rows = []
    for entry in entries:
        entry = GradeEntry(*entry)
        if _is_blank(entry.grade) or _is_blank(entry.weight):
            continue
        rows.append(entry)
    return rows


def aggregate(entries: Sequence[GradeEntry],
              weight_format: str = "percentage",
              scheme: str = "letters") -> AggregationResult:
    """
    Weighted average of the usable rows.

    Rows missing a grade or a weight are dropped first. Every remaining row
    must parse, and weights must be non-negative. In percentage mode the
    weights may not add up to more than 100.
    """
    if weight_format not in WEIGHT_FORMATS:
        raise ValueError(f"Unknown weight format {weight_format!r}; expected one of {WEIGHT_FORMATS}.")

    rows = usable_entries(entries)
    if not rows:
        raise EmptyInput()

    gw = np.zeros((len(rows), 2), dtype=float)
    for i, row in enumerate(rows):
        grade = parse_grade(row.grade, scheme)
        weight = parse_number(row.weight)
        if grade is None or weight is None or weight < 0:
            raise InvalidEntry(str(row.assignment or "").strip())
        gw[i] = (grade, weight)

    grades = gw[:, 0]
    weights = gw[:, 1]
    total_weight = float(weights.sum())
    weighted_sum = float(np.dot(grades, weights))

    if weight_format == "percentage" and total_weight > 100:
        raise WeightOverflow()
    if total_weight == 0:
        raise ZeroWeight()

    average = round_1dp_half_up(weighted_sum / total_weight)
    letter = letter_for(average)
    logger.debug("Aggregated %d rows: %.1f (%s) over weight %g", len(rows), average, letter, total_weight)

    return AggregationResult(
        average=average,
        letter=letter,
        entries=tuple(rows),
        weighted_sum=weighted_sum,
        total_weight=total_weight,
    )


def required_on_remaining(weighted_sum: float,
                          total_weight: float,
                          remaining_weight: float,
                          goal: float) -> float:
    if remaining_weight <= 0:
        raise ValueError("remaining_weight must be positive")

    x = (goal * (total_weight + remaining_weight) - weighted_sum) / remaining_weight
    return x


def project_goal(result: AggregationResult,
                 goal_token,
                 remaining_weight_token,
                 scheme: str = "letters") -> Optional[GoalProjection]:
    """
    Score needed on the remaining work to finish at the goal grade.

    Returns None when the goal or the remaining weight is missing or unusable,
    in which case the plain average stands on its own.
    """
    goal = parse_grade(goal_token, scheme)
    remaining_weight = parse_number(remaining_weight_token)
    if goal is None or remaining_weight is None or remaining_weight <= 0:
        return None

    required = required_on_remaining(
        weighted_sum=result.weighted_sum,
        total_weight=result.total_weight,
        remaining_weight=remaining_weight,
        goal=goal,
    )
    # threshold uses the raw value; rounding is for display only
    attainable = required <= 100
    if not attainable:
        logger.warning("Goal %s needs %.3f on remaining weight %g", goal_token, required, remaining_weight)
    return GoalProjection(required=required, attainable=attainable)


def _solve_final(current: float, desired: float, final_weight_pct: float) -> float:
    if not 0 < final_weight_pct <= 100:
        raise InvalidWeight()

    # desired = current * (1 - w) + required * w
    w = final_weight_pct / 100
    required = (desired - current * (1 - w)) / w
    logger.debug("Final exam: current=%g desired=%g weight=%g -> %.3f", current, desired, final_weight_pct, required)
    return required


def required_final_score(current: float, desired: float, final_weight_pct: float) -> float:
    return round_1dp_half_up(_solve_final(current, desired, final_weight_pct))


# ------------------------
# Summaries for the UI
# ------------------------
def grade_summary(entries: Sequence[GradeEntry],
                  settings: CalculatorSettings,
                  goal_token="",
                  remaining_weight_token=""):
    """
    entries:  rows from the table (assignment, grade, weight) as text
    settings: grade scheme and weight format chosen in the sidebar
    goal_token / remaining_weight_token: optional "what do I need" inputs
    """
    result = aggregate(entries, weight_format=settings.weight_format, scheme=settings.scheme)
    goal = project_goal(result, goal_token, remaining_weight_token, scheme=settings.scheme)

    goal_required_rounded = None
    goal_warning = None
    if goal is not None:
        goal_required_rounded = round_1dp_half_up(goal.required)
        if not goal.attainable:
            goal_warning = (
                f"To achieve your goal, you would need {goal_required_rounded:.1f} "
                f"on remaining tasks, which is not possible."
            )

    return {
        "average": result.average,
        "letter": result.letter,
        "entries": list(result.entries),
        "total_weight": result.total_weight,
        "weighted_sum": result.weighted_sum,
        "goal": goal,
        "goal_required_rounded": goal_required_rounded,
        "goal_warning": goal_warning,
    }


def final_exam_summary(current: float, desired: float, final_weight_pct: float):
    raw = _solve_final(current, desired, final_weight_pct)
    required_grade = round_1dp_half_up(raw)

    exceeds_maximum = raw > 100
    below_minimum = raw < 0

    advisory = None
    if exceeds_maximum:
        advisory = (
            f"You would need {required_grade:.1f}% on the final, "
            f"which is above the maximum of 100%."
        )
    elif below_minimum:
        advisory = "You will reach your desired grade even with a 0% on the final."

    return {
        "required_grade": required_grade,
        "exceeds_maximum": exceeds_maximum,
        "below_minimum": below_minimum,
        "advisory": advisory,
    }
