from .evaluator import age_in_days, evaluate
from .reporter import ComplianceSummary, report

__all__ = [
    "ComplianceSummary",
    "age_in_days",
    "evaluate",
    "report",
]
