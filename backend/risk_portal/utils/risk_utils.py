import math
from typing import NamedTuple

from ..schemas import RiskLevel

# tier thresholds
HIGH_SCORE_BELOW = 50
HIGH_ATTENDANCE_BELOW = 60
HIGH_INTERNAL_BELOW = 40
LOW_SCORE_ABOVE = 75
LOW_ATTENDANCE_ABOVE = 80
LOW_INTERNAL_ABOVE = 70

class RiskAssessment(NamedTuple):
    performance_score: int
    risk_level: RiskLevel
    risk_score: int

def round_half_up(x: float) -> int:
    # round() in python is banker's rounding; scores round .5 upward
    return int(math.floor(x + 0.5))

def performance_score(attendance: float, internal_marks: float, assignment_score: float) -> int:
    return round_half_up((attendance + internal_marks + assignment_score) / 3)

def classify(attendance: float, internal_marks: float, assignment_score: float) -> RiskAssessment:
    """Rule-based tiering; the first matching rule wins (HIGH, then LOW, else MEDIUM).

    Inputs are expected in [0, 100] and are not range-checked here.
    """
    score = performance_score(attendance, internal_marks, assignment_score)
    if score < HIGH_SCORE_BELOW or attendance < HIGH_ATTENDANCE_BELOW or internal_marks < HIGH_INTERNAL_BELOW:
        level = RiskLevel.HIGH
    elif score > LOW_SCORE_ABOVE and attendance > LOW_ATTENDANCE_ABOVE and internal_marks > LOW_INTERNAL_ABOVE:
        level = RiskLevel.LOW
    else:
        level = RiskLevel.MEDIUM
    return RiskAssessment(performance_score=score, risk_level=level, risk_score=100 - score)
