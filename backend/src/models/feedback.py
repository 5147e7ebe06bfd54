"""Feedback data models."""

import re
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.constants import (
    DEFAULT_AUTO_CLOSE_DELAY_MS,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    FEEDBACK_ENDPOINT,
    MAX_COMMENT_LENGTH,
    MAX_RATING,
)


class FeedbackType(str, Enum):
    """Feedback categories offered by the dialog."""

    USER_EXPERIENCE = "user-experience"
    PERFORMANCE = "performance"
    PRODUCT_SERVICE = "product-service"
    TRANSACTIONAL = "transactional"

    @classmethod
    def parse(cls, value: Any) -> "FeedbackType":
        """Parse any spelling of a feedback type.

        Accepts the canonical hyphenated value, the backend snake_case value
        and loose variants such as "Product Service" or "productService".

        Raises:
            ValueError: If the value does not name a known type.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid feedback type: {value!r}")
        # camelCase -> hyphenated, then collapse separators
        text = re.sub(r"([a-z])([A-Z])", r"\1-\2", value.strip())
        normalized = re.sub(r"[\s_/-]+", "-", text).lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Invalid feedback type: {value!r}")

    @property
    def backend_value(self) -> str:
        """snake_case value expected by the backend enums."""
        return self.value.replace("-", "_")

    @property
    def label(self) -> str:
        """Human readable label."""
        return FEEDBACK_TYPE_LABELS[self]


FEEDBACK_TYPE_LABELS: dict[FeedbackType, str] = {
    FeedbackType.USER_EXPERIENCE: "User experience",
    FeedbackType.PERFORMANCE: "Performance",
    FeedbackType.PRODUCT_SERVICE: "Product / Service",
    FeedbackType.TRANSACTIONAL: "Transactional",
}

DEFAULT_FEEDBACK_TYPE = FeedbackType.USER_EXPERIENCE


class DialogState(str, Enum):
    """Lifecycle states of the feedback dialog."""

    CLOSED = "closed"
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCESS = "success"


class FeedbackDraft(BaseModel):
    """In-progress feedback as edited in the dialog."""

    model_config = ConfigDict(validate_assignment=True)

    rating: int = Field(0, ge=0, le=MAX_RATING, description="0 means not yet rated")
    comment: str = Field("", max_length=MAX_COMMENT_LENGTH)
    feedback_type: FeedbackType = Field(default=DEFAULT_FEEDBACK_TYPE)
    meta: dict[str, Any] = Field(
        default_factory=dict, description="Caller data passed through to the payload"
    )

    @field_validator("feedback_type", mode="before")
    @classmethod
    def _parse_feedback_type(cls, value: Any) -> FeedbackType:
        return FeedbackType.parse(value)


class OpenOptions(BaseModel):
    """Options supplied by the caller each time the dialog is opened."""

    title: str = "Session feedback"
    subtitle: str = "Please rate your experience below"
    submit_label: str = "Submit feedback"
    home_label: str = "Back home"
    success_title: str = "Feedback received"
    success_message: str = "Thank you for helping us improve your experience."
    show_rating_summary: bool = False
    auto_close_delay: int | None = Field(
        DEFAULT_AUTO_CLOSE_DELAY_MS,
        ge=0,
        description="Milliseconds before closing after success; None disables",
    )
    meta: dict[str, Any] = Field(default_factory=dict)
    on_submitted: Callable[[FeedbackDraft], Any] | None = None
    on_closed: Callable[[], Any] | None = None

    def initial_feedback_type(self) -> FeedbackType:
        """Type hinted by meta["type"] or meta["feedbackType"], else the default."""
        hint = self.meta.get("type") or self.meta.get("feedbackType")
        if not hint:
            return DEFAULT_FEEDBACK_TYPE
        try:
            return FeedbackType.parse(hint)
        except ValueError:
            return DEFAULT_FEEDBACK_TYPE


class FeedbackConfig(BaseModel):
    """Behavior flags shared by every dialog a service instance opens."""

    strict_comment_required: bool = Field(
        False, description="Require a non-empty comment before submitting"
    )
    supports_edit_after_submit: bool = Field(
        True, description="Editing after success updates the created record"
    )
    require_authenticated_user: bool = Field(
        False, description="Refuse to submit without an acting user"
    )
    legacy_type_aliases: bool = Field(
        True, description="Also send feedbackType, type and category"
    )
    endpoint: str = FEEDBACK_ENDPOINT


class FeedbackSubmission(BaseModel):
    """Canonical body of the create/update feedback call."""

    rating: int = Field(..., ge=1, le=MAX_RATING)
    comment: str = Field("", max_length=MAX_COMMENT_LENGTH)
    message: str = Field("", max_length=MAX_COMMENT_LENGTH)
    feedback_type: str
    subject: str
    priority: str = DEFAULT_PRIORITY
    status: str = DEFAULT_STATUS
    user_id: int | str | None = None
    user_type: str


class SubmissionResult(BaseModel):
    """What the dialog remembers about its last successful submission."""

    last_submitted_id: int | str | None = None
    last_submitted: FeedbackDraft | None = None
