"""
Guidance rules: evaluation, recommendations and save-time validation.
"""

from .calculations import age_in_years, calculate, tenure
from .conditions import all_conditions_hold, answer_matches, condition_holds
from .engine import GuidanceEngine, GuidanceResult, combine_answers
from .validator import ConfigValidator

__all__ = [
    "age_in_years",
    "calculate",
    "tenure",
    "all_conditions_hold",
    "answer_matches",
    "condition_holds",
    "GuidanceEngine",
    "GuidanceResult",
    "combine_answers",
    "ConfigValidator",
]
