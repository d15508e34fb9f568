"""SCM application package."""

from .outcome import ActionOutcome, OutcomeKind, classify_action_response, report_action_outcome
from .service import PerformResult, ScmService

__all__ = [
    "ActionOutcome",
    "OutcomeKind",
    "PerformResult",
    "ScmService",
    "classify_action_response",
    "report_action_outcome",
]
