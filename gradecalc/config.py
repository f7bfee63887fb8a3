import logging
import os
from dataclasses import dataclass
from typing import Optional

GRADE_SCHEMES = ("letters", "mixed")
WEIGHT_FORMATS = ("percentage", "points")

# Labels shown in the sidebar -> values used by the engine
GRADE_SCHEME_OPTIONS = {
    "Letters only (A+, B, C-...)": "letters",
    "Letters or numbers (A, 85...)": "mixed",
}
WEIGHT_FORMAT_OPTIONS = {
    "Percentage (%)": "percentage",
    "Points": "points",
}

DEFAULT_ENTRIES = [
    {"Assignment": "Homework 1", "Grade": "A", "Weight": "5"},
    {"Assignment": "Project", "Grade": "B", "Weight": "20"},
    {"Assignment": "Midterm Exam", "Grade": "B+", "Weight": "20"},
]

MAX_SAVED_CALCULATIONS = 100

LOG_LEVEL_ENV = "GRADECALC_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class CalculatorSettings:
    scheme: str = "letters"
    weight_format: str = "percentage"

    def __post_init__(self):
        if self.scheme not in GRADE_SCHEMES:
            raise ValueError(f"scheme must be one of {GRADE_SCHEMES} (got {self.scheme!r})")
        if self.weight_format not in WEIGHT_FORMATS:
            raise ValueError(f"weight_format must be one of {WEIGHT_FORMATS} (got {self.weight_format!r})")


def configure_logging(level: Optional[str] = None) -> int:
    """
    Set up the root logger once. The level comes from the argument, then
    GRADECALC_LOG_LEVEL, then WARNING. Returns the numeric level used.
    """
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level {name!r}")

    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger("gradecalc").setLevel(numeric)
    return numeric
