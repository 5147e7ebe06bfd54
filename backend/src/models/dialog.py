"""View models rendered by the feedback dialog."""

from enum import Enum

from pydantic import BaseModel, Field


class DialogAction(str, Enum):
    """User gestures the dialog understands."""

    RATE = "rate"
    HOVER = "hover"
    SET_COMMENT = "set_comment"
    SET_TYPE = "set_type"
    SUBMIT = "submit"
    BACK_HOME = "back_home"
    CLOSE = "close"
    EDIT = "edit"


class DialogButton(BaseModel):
    """A clickable control."""

    label: str
    action: DialogAction
    enabled: bool = True
    busy: bool = Field(False, description="Show a spinner next to the label")


class RatingStar(BaseModel):
    """One star of the 1-5 rating selector."""

    value: int
    active: bool


class TypeOption(BaseModel):
    """One entry of the feedback type selector."""

    value: str
    label: str
    selected: bool


class EditingView(BaseModel):
    """Form shown while the user is writing feedback."""

    title: str
    subtitle: str
    stars: list[RatingStar]
    rating: int
    rating_caption: str
    type_options: list[TypeOption]
    comment: str
    comment_max_length: int
    error: str | None = None
    submit: DialogButton
    back_home: DialogButton
    close: DialogButton


class FeedbackSummary(BaseModel):
    """Recap of what was submitted."""

    type_label: str
    rating: int
    max_rating: int
    comment: str | None = None


class SuccessView(BaseModel):
    """Confirmation shown after a successful submission."""

    title: str
    message: str
    summary: FeedbackSummary | None = None
    edit: DialogButton
    close: DialogButton
