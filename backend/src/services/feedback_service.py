"""Feedback dialog state machine and submission logic."""

import json
import logging
import threading
from functools import partial
from typing import Any, Callable

import requests

from models.feedback import (
    DialogState,
    FeedbackConfig,
    FeedbackDraft,
    FeedbackSubmission,
    FeedbackType,
    OpenOptions,
    SubmissionResult,
)
from models.user import ActingUser
from services.api_client import ApiClient, ApiError
from utils.constants import (
    ANONYMOUS_USER_TYPE,
    CLOSE_RESET_DELAY_MS,
    COMMENT_PREVIEW_LENGTH,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    MAX_COMMENT_LENGTH,
    MAX_RATING,
)
from utils.scheduler import Scheduler, ThreadingScheduler, TimerHandle

logger = logging.getLogger(__name__)


RATING_REQUIRED_MESSAGE = "Rating is required (1-5)"
COMMENT_REQUIRED_MESSAGE = "Comment is required"
LOGIN_REQUIRED_MESSAGE = "You must be logged in to submit feedback."
ENDPOINT_NOT_FOUND_MESSAGE = (
    "Feedback endpoint not found. Ensure backend exposes POST /feedback "
    "and any API_PATH_PREFIX matches."
)
VALIDATION_FAILED_MESSAGE = "Validation failed."
SUBMIT_FAILED_MESSAGE = "Failed to submit feedback."
NETWORK_ERROR_MESSAGE = "Failed to submit feedback. Check your connection and try again."

VALIDATION_ERROR_CODE = "VALIDATION_ERROR"
VALIDATION_STATUSES = {400, 422}

# Meta keys read as the initial type hint rather than forwarded
TYPE_HINT_KEYS = ("type", "feedbackType")


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _message_text(value: Any) -> str | None:
    """Render one validation entry as text."""
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        text = value.get("msg") or value.get("message")
        if isinstance(text, str) and text:
            return text
        return json.dumps(value, default=str)
    return str(value)


def extract_field_message(details: Any) -> str | None:
    """Find the most specific validation message in an error body.

    Understands ``fields`` / ``validationErrors`` maps of field -> messages,
    ``errors`` lists, FastAPI ``detail`` lists, a descriptive ``error`` string
    and a plain ``message``.
    """
    if isinstance(details, str):
        return details.strip() or None
    if not isinstance(details, dict):
        return None

    for key in ("fields", "validationErrors"):
        mapping = details.get(key)
        if isinstance(mapping, dict) and mapping:
            return _message_text(_first(next(iter(mapping.values()))))

    for key in ("errors", "detail"):
        entries = details.get(key)
        if isinstance(entries, list) and entries:
            return _message_text(entries[0])

    error = details.get("error")
    if isinstance(error, str) and error and error != VALIDATION_ERROR_CODE:
        return error

    return _message_text(details.get("message"))


def describe_api_error(error: ApiError) -> str:
    """User-facing message for a rejected submission."""
    if error.status == 404:
        return ENDPOINT_NOT_FOUND_MESSAGE
    if error.code == VALIDATION_ERROR_CODE or error.status in VALIDATION_STATUSES:
        return (
            extract_field_message(error.details)
            or error.message
            or VALIDATION_FAILED_MESSAGE
        )
    return error.message or SUBMIT_FAILED_MESSAGE


def extract_record_id(response: Any) -> int | str | None:
    """Pick the created record id out of a create response."""
    if not isinstance(response, dict):
        return None
    for record in (response, response.get("data")):
        if not isinstance(record, dict):
            continue
        for key in ("id", "feedback_id"):
            value = record.get(key)
            if isinstance(value, bool):
                continue
            if isinstance(value, int) or (isinstance(value, str) and value):
                return value
    return None


def build_payload(
    draft: FeedbackDraft, user: ActingUser | None, config: FeedbackConfig
) -> dict[str, Any]:
    """Request body for a create/update call."""
    meta = {k: v for k, v in draft.meta.items() if k not in TYPE_HINT_KEYS}
    type_value = draft.feedback_type.backend_value

    submission = FeedbackSubmission(
        rating=draft.rating,
        comment=draft.comment,
        message=draft.comment,
        feedback_type=type_value,
        subject=str(meta.get("subject") or type_value),
        priority=str(meta.get("priority") or DEFAULT_PRIORITY),
        status=str(meta.get("status") or DEFAULT_STATUS),
        user_id=user.id if user else None,
        user_type=user.user_type if user else ANONYMOUS_USER_TYPE,
    )

    payload = {**meta, **submission.model_dump(exclude_none=True)}
    if config.legacy_type_aliases:
        payload["feedbackType"] = draft.feedback_type.value
        payload["type"] = type_value
        payload["category"] = type_value
    return payload


def _preview(comment: str) -> str:
    if len(comment) > COMMENT_PREVIEW_LENGTH:
        return comment[:COMMENT_PREVIEW_LENGTH] + "…"
    return comment


class FeedbackService:
    """State machine behind the feedback dialog.

    One instance backs one dialog. Pages receive it by reference and call
    ``open``; the dialog binding forwards user gestures to the mutators and
    ``submit``. States move closed -> editing -> submitting -> success/editing
    -> closed, with ``start_edit`` leading from success back to editing.

    Transitions hold an RLock so scheduler callbacks never interleave with
    user gestures. The lock is released during the network call; the
    SUBMITTING state keeps a second submission out.
    """

    def __init__(
        self,
        client: ApiClient,
        config: FeedbackConfig | None = None,
        user_provider: Callable[[], ActingUser | None] | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.client = client
        self.config = config or FeedbackConfig()
        self.user_provider = user_provider
        self.scheduler = scheduler or ThreadingScheduler()

        self._lock = threading.RLock()
        self._state = DialogState.CLOSED
        self._options: OpenOptions | None = None
        self._draft = FeedbackDraft()
        self._error: str | None = None
        self._editing = False
        self._result = SubmissionResult()
        # Bumped on open/close so late timers and responses can tell they are stale
        self._generation = 0
        self._auto_close_timer: TimerHandle | None = None
        self._reset_timer: TimerHandle | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> DialogState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state != DialogState.CLOSED

    @property
    def draft(self) -> FeedbackDraft:
        """Copy of the draft being edited."""
        with self._lock:
            return self._draft.model_copy(deep=True)

    @property
    def options(self) -> OpenOptions | None:
        return self._options

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def editing(self) -> bool:
        """True after start_edit until the dialog is reset."""
        return self._editing

    @property
    def last_submitted(self) -> FeedbackDraft | None:
        return self._result.last_submitted

    @property
    def last_submitted_id(self) -> int | str | None:
        return self._result.last_submitted_id

    @property
    def can_submit(self) -> bool:
        with self._lock:
            if self._state != DialogState.EDITING or self._draft.rating == 0:
                return False
            if self.config.strict_comment_required:
                return bool(self._draft.comment.strip())
            return True

    # ------------------------------------------------------------------
    # Open / close
    # ------------------------------------------------------------------

    def open(self, options: OpenOptions | dict[str, Any] | None = None) -> None:
        """Show the dialog with a fresh draft, or keep the draft mid-edit."""
        if isinstance(options, dict):
            options = OpenOptions(**options)
        options = options or OpenOptions()

        with self._lock:
            if self._reset_timer is not None:
                # Reopened before the close reset ran; apply it now.
                self._reset_timer.cancel()
                self._reset_timer = None
                self._clear()
            self._cancel_auto_close()
            self._generation += 1
            self._options = options

            if self._editing:
                self._draft.meta = dict(options.meta)
            else:
                self._draft = FeedbackDraft(
                    feedback_type=options.initial_feedback_type(),
                    meta=dict(options.meta),
                )

            self._error = None
            self._state = DialogState.EDITING
            logger.debug(f"Feedback dialog opened: {options.title!r}")

    def close(self) -> None:
        """Hide the dialog now and forget its draft shortly after."""
        self._close()

    def _close(self, expected_generation: int | None = None) -> None:
        with self._lock:
            if expected_generation is not None and (
                expected_generation != self._generation
                or self._state != DialogState.SUCCESS
            ):
                return

            options = self._options
            self._state = DialogState.CLOSED
            self._generation += 1
            self._cancel_auto_close()
            if self._reset_timer is not None:
                self._reset_timer.cancel()
            self._reset_timer = self.scheduler.call_later(
                CLOSE_RESET_DELAY_MS, partial(self._reset_after_close, self._generation)
            )

        if options is not None and options.on_closed is not None:
            try:
                options.on_closed()
            except Exception:
                logger.exception("on_closed callback failed")

    def _reset_after_close(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._reset_timer = None
            self._clear()

    def _clear(self) -> None:
        self._options = None
        self._draft = FeedbackDraft()
        self._error = None
        self._editing = False

    def _cancel_auto_close(self) -> None:
        if self._auto_close_timer is not None:
            self._auto_close_timer.cancel()
            self._auto_close_timer = None

    # ------------------------------------------------------------------
    # Draft mutations
    # ------------------------------------------------------------------

    def set_rating(self, rating: int) -> None:
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValueError(f"Rating must be an integer, got {rating!r}")
        if not 0 <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be between 0 and {MAX_RATING}, got {rating}")
        with self._lock:
            if self._state == DialogState.EDITING:
                self._draft.rating = rating

    def set_comment(self, comment: str | None) -> None:
        if comment is None:
            comment = ""
        if not isinstance(comment, str):
            raise ValueError(f"Comment must be a string, got {comment!r}")
        with self._lock:
            if self._state == DialogState.EDITING:
                self._draft.comment = comment[:MAX_COMMENT_LENGTH]

    def set_feedback_type(self, feedback_type: FeedbackType | str) -> None:
        parsed = FeedbackType.parse(feedback_type)
        with self._lock:
            if self._state == DialogState.EDITING:
                self._draft.feedback_type = parsed

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self) -> bool:
        """Validate and send the draft.

        Returns True when the backend accepted it. Failures never raise; they
        land in ``error`` and leave the dialog in the editing state.
        """
        with self._lock:
            if self._state != DialogState.EDITING:
                logger.debug(f"Ignoring submit in state {self._state.value}")
                return False
            if self._draft.rating == 0:
                self._error = RATING_REQUIRED_MESSAGE
                return False
            if self.config.strict_comment_required and not self._draft.comment.strip():
                self._error = COMMENT_REQUIRED_MESSAGE
                return False

            try:
                draft = self._draft.model_copy(deep=True)
            except Exception as e:
                logger.exception("Could not copy feedback draft")
                self._error = str(e) or SUBMIT_FAILED_MESSAGE
                return False
            draft.comment = draft.comment.strip()

            self._error = None
            self._state = DialogState.SUBMITTING
            generation = self._generation
            options = self._options or OpenOptions()
            update_id = None
            if self._editing and self.config.supports_edit_after_submit:
                update_id = self._result.last_submitted_id

        user = self._resolve_user()
        if self.config.require_authenticated_user and user is None:
            return self._fail(generation, LOGIN_REQUIRED_MESSAGE)

        try:
            payload = build_payload(draft, user, self.config)
            logger.debug(
                f"Submitting feedback: rating={draft.rating} "
                f"type={payload['feedback_type']} user_type={payload['user_type']} "
                f"comment={_preview(draft.comment)!r}"
            )

            if update_id is not None:
                self.client.put(f"{self.config.endpoint}/{update_id}", body=payload)
                record_id = update_id
            else:
                response = self.client.post(self.config.endpoint, body=payload)
                record_id = extract_record_id(response)

            if record_id is not None:
                with self._lock:
                    if generation == self._generation:
                        self._result.last_submitted_id = record_id

            if options.on_submitted is not None:
                options.on_submitted(draft)

        except ApiError as e:
            logger.warning(
                f"Feedback submission rejected: status={e.status} code={e.code} "
                f"details={e.details}"
            )
            return self._fail(generation, describe_api_error(e))
        except requests.exceptions.RequestException as e:
            logger.warning(f"Feedback submission failed in transport: {e}")
            return self._fail(generation, NETWORK_ERROR_MESSAGE)
        except Exception as e:
            logger.exception("Feedback submission failed")
            return self._fail(generation, str(e) or SUBMIT_FAILED_MESSAGE)

        self._succeed(generation, draft, options)
        return True

    def _resolve_user(self) -> ActingUser | None:
        if self.user_provider is None:
            return None
        try:
            return self.user_provider()
        except Exception:
            logger.exception("Could not resolve acting user")
            return None

    def _fail(self, generation: int, message: str) -> bool:
        with self._lock:
            if generation == self._generation and self._state == DialogState.SUBMITTING:
                self._error = message
                self._state = DialogState.EDITING
            else:
                logger.info(f"Dropping submission error for closed dialog: {message}")
        return False

    def _succeed(self, generation: int, draft: FeedbackDraft, options: OpenOptions) -> None:
        with self._lock:
            if generation != self._generation or self._state != DialogState.SUBMITTING:
                logger.info("Feedback submitted after the dialog was closed")
                return
            self._result.last_submitted = draft
            self._state = DialogState.SUCCESS
            logger.info(f"Feedback submitted (id={self._result.last_submitted_id})")

            if options.auto_close_delay is not None:
                self._auto_close_timer = self.scheduler.call_later(
                    options.auto_close_delay, partial(self._close, generation)
                )

    # ------------------------------------------------------------------
    # Edit after submit
    # ------------------------------------------------------------------

    def start_edit(self) -> bool:
        """Return from the success view to the form with the submitted values."""
        with self._lock:
            last = self._result.last_submitted
            if self._state != DialogState.SUCCESS or last is None:
                return False
            self._cancel_auto_close()
            self._draft = FeedbackDraft(
                rating=last.rating,
                comment=last.comment,
                feedback_type=last.feedback_type,
                meta=dict(self._options.meta if self._options else last.meta),
            )
            self._editing = True
            self._error = None
            self._state = DialogState.EDITING
            return True
