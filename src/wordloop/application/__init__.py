# Application Package
from .batch import PendingUpdateBatch
from .review_service import ReviewService
from .session import AnswerOutcome, ReviewSession, SessionProgress, SessionState

__all__ = [
    "PendingUpdateBatch",
    "ReviewSession",
    "SessionState",
    "SessionProgress",
    "AnswerOutcome",
    "ReviewService",
]
