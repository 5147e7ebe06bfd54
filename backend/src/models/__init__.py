"""Data models for the AgriConnect feedback client."""

from .dialog import (
    DialogAction,
    DialogButton,
    EditingView,
    FeedbackSummary,
    RatingStar,
    SuccessView,
    TypeOption,
)
from .feedback import (
    DialogState,
    FeedbackConfig,
    FeedbackDraft,
    FeedbackSubmission,
    FeedbackType,
    OpenOptions,
    SubmissionResult,
)
from .user import ActingUser

__all__ = [
    "ActingUser",
    "DialogAction",
    "DialogButton",
    "DialogState",
    "EditingView",
    "FeedbackConfig",
    "FeedbackDraft",
    "FeedbackSubmission",
    "FeedbackSummary",
    "FeedbackType",
    "OpenOptions",
    "RatingStar",
    "SubmissionResult",
    "SuccessView",
    "TypeOption",
]
