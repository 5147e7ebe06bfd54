"""Feedback dialog binding: renders the state machine and routes gestures."""

import logging
from typing import Any

from models.dialog import (
    DialogAction,
    DialogButton,
    EditingView,
    FeedbackSummary,
    RatingStar,
    SuccessView,
    TypeOption,
)
from models.feedback import DialogState, FeedbackType, OpenOptions
from services.feedback_service import FeedbackService
from utils.constants import MAX_COMMENT_LENGTH, MAX_RATING

logger = logging.getLogger(__name__)

DialogView = EditingView | SuccessView | None

FILLED_STAR = "★"
EMPTY_STAR = "☆"


class FeedbackDialog:
    """Presentation layer over a FeedbackService.

    Holds only presentation state (the hovered star); every other decision
    belongs to the service.
    """

    def __init__(self, service: FeedbackService):
        self.service = service
        self.hover_rating: int | None = None

    @property
    def options(self) -> OpenOptions:
        return self.service.options or OpenOptions()

    def render(self) -> DialogView:
        """Current view, or None while the dialog is closed."""
        state = self.service.state
        if state == DialogState.CLOSED:
            return None
        if state == DialogState.SUCCESS:
            return self._render_success()
        return self._render_editing(submitting=state == DialogState.SUBMITTING)

    def _render_editing(self, submitting: bool) -> EditingView:
        options = self.options
        draft = self.service.draft
        shown = self.hover_rating if self.hover_rating is not None else draft.rating
        caption = f"{draft.rating}/{MAX_RATING}"
        if draft.rating > 0:
            caption += " stars"

        return EditingView(
            title=options.title,
            subtitle=options.subtitle,
            stars=[
                RatingStar(value=value, active=shown >= value)
                for value in range(1, MAX_RATING + 1)
            ],
            rating=draft.rating,
            rating_caption=caption,
            type_options=[
                TypeOption(
                    value=member.value,
                    label=member.label,
                    selected=member == draft.feedback_type,
                )
                for member in FeedbackType
            ],
            comment=draft.comment,
            comment_max_length=MAX_COMMENT_LENGTH,
            error=self.service.error,
            submit=DialogButton(
                label=options.submit_label,
                action=DialogAction.SUBMIT,
                enabled=self.service.can_submit,
                busy=submitting,
            ),
            back_home=DialogButton(
                label=options.home_label,
                action=DialogAction.BACK_HOME,
                enabled=not submitting,
            ),
            close=DialogButton(label="Close feedback", action=DialogAction.CLOSE),
        )

    def _render_success(self) -> SuccessView:
        options = self.options
        last = self.service.last_submitted

        summary = None
        if options.show_rating_summary and last is not None:
            summary = FeedbackSummary(
                type_label=last.feedback_type.label,
                rating=last.rating,
                max_rating=MAX_RATING,
                comment=last.comment.strip() or None,
            )

        return SuccessView(
            title=options.success_title,
            message=options.success_message,
            summary=summary,
            edit=DialogButton(
                label="Edit feedback",
                action=DialogAction.EDIT,
                enabled=last is not None,
            ),
            close=DialogButton(label="Close", action=DialogAction.CLOSE),
        )

    def dispatch(self, action: DialogAction | str, value: Any = None) -> DialogView:
        """Apply a user gesture and return the resulting view.

        Gestures the current view does not offer are ignored.

        Raises:
            ValueError: If the gesture carries an invalid rating or type.
        """
        action = DialogAction(action)
        view = self.render()

        if isinstance(view, EditingView):
            self._dispatch_editing(view, action, value)
        elif isinstance(view, SuccessView):
            if action == DialogAction.EDIT and view.edit.enabled:
                self.hover_rating = None
                self.service.start_edit()
            elif action == DialogAction.CLOSE:
                self.service.close()
            else:
                logger.debug(f"Ignoring {action.value} on success view")
        else:
            logger.debug(f"Ignoring {action.value} while closed")

        return self.render()

    def _dispatch_editing(self, view: EditingView, action: DialogAction, value: Any) -> None:
        if action == DialogAction.RATE:
            rating = _as_rating(value)
            self.hover_rating = None
            self.service.set_rating(rating)
        elif action == DialogAction.HOVER:
            self.hover_rating = None if value is None else _as_rating(value)
        elif action == DialogAction.SET_COMMENT:
            self.service.set_comment("" if value is None else str(value))
        elif action == DialogAction.SET_TYPE:
            self.service.set_feedback_type(value)
        elif action == DialogAction.SUBMIT:
            if view.submit.enabled:
                self.service.submit()
            else:
                logger.debug("Submit ignored: button disabled")
        elif action in (DialogAction.BACK_HOME, DialogAction.CLOSE):
            if action == DialogAction.BACK_HOME and not view.back_home.enabled:
                return
            self.hover_rating = None
            self.service.close()
        else:
            logger.debug(f"Ignoring {action.value} on editing view")


def _as_rating(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Rating must be a number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Rating must be a number, got {value!r}")


def _stars(rating: int, max_rating: int = MAX_RATING) -> str:
    return FILLED_STAR * rating + EMPTY_STAR * (max_rating - rating)


def _button(button: DialogButton) -> str:
    text = f"[{button.label}]"
    if button.busy:
        text += " (sending…)"
    elif not button.enabled:
        text += " (disabled)"
    return text


def render_text(view: DialogView) -> str:
    """Plain-text rendering of a dialog view."""
    if view is None:
        return ""

    if isinstance(view, SuccessView):
        lines = [f"✓ {view.title}", view.message]
        if view.summary is not None:
            summary = view.summary
            lines.append("")
            lines.append(f"  Feedback type: {summary.type_label}")
            lines.append(
                f"  Your rating: {_stars(summary.rating, summary.max_rating)} "
                f"({summary.rating}/{summary.max_rating})"
            )
            if summary.comment:
                lines.append(f"  Comment: {summary.comment}")
        lines.append("")
        lines.append(f"{_button(view.edit)}  {_button(view.close)}")
        return "\n".join(lines)

    active = sum(1 for star in view.stars if star.active)
    type_line = "  ".join(
        f"[{'x' if option.selected else ' '}] {option.label}"
        for option in view.type_options
    )
    lines = [
        f"== {view.title} ==",
        view.subtitle,
        "",
        f"Rating: {_stars(active, len(view.stars))} {view.rating_caption}",
        f"Type:   {type_line}",
        f"Comment ({len(view.comment)}/{view.comment_max_length}): {view.comment}",
    ]
    if view.error:
        lines.append(f"! {view.error}")
    lines.append("")
    lines.append(f"{_button(view.submit)}  or  {_button(view.back_home)}")
    return "\n".join(lines)
