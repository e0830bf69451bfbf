"""
Schema definitions for the questionnaire and guidance engine.
"""

from .questions import (
    NOT_NONE,
    FormType,
    GuidanceBundle,
    Question,
    QuestionType,
    parse_question_map,
)
from .company_config import CompanyConfig, OptionOverrides, ProjectConfig, QuestionOverride
from .guidance import (
    Assignments,
    CalculatedRule,
    Calculation,
    CalculationType,
    CalculationUnit,
    DateOffsetCondition,
    DirectRule,
    GuidanceRule,
    MasterTask,
    MasterTip,
    QuestionCondition,
    Range,
    RecommendationItem,
    Recommendations,
    TenureCondition,
    TipItem,
    parse_rule,
    parse_rules,
)

__all__ = [
    "NOT_NONE",
    "FormType",
    "GuidanceBundle",
    "Question",
    "QuestionType",
    "parse_question_map",
    "CompanyConfig",
    "OptionOverrides",
    "ProjectConfig",
    "QuestionOverride",
    "Assignments",
    "CalculatedRule",
    "Calculation",
    "CalculationType",
    "CalculationUnit",
    "DateOffsetCondition",
    "DirectRule",
    "GuidanceRule",
    "MasterTask",
    "MasterTip",
    "QuestionCondition",
    "Range",
    "RecommendationItem",
    "Recommendations",
    "TenureCondition",
    "TipItem",
    "parse_rule",
    "parse_rules",
]
