"""External reviewer adapters."""

from .oracle import (
    OracleReviewer,
    ReviewerEnvironment,
    ReviewRequest,
    ReviewResult,
    SessionStatus,
    classify_failure,
)

__all__ = [
    "OracleReviewer",
    "ReviewRequest",
    "ReviewResult",
    "ReviewerEnvironment",
    "SessionStatus",
    "classify_failure",
]
