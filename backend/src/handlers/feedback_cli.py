"""
Interactive terminal front-end for the feedback dialog.

Usage:
    agriconnect-feedback --base-url http://localhost:5000 --summary
    agriconnect-feedback --meta orderId=981 --meta type=transactional
"""

import argparse
import dataclasses
import logging
import sys
from typing import Any, Callable

from handlers.feedback_dialog import FeedbackDialog, render_text
from models.dialog import DialogAction, EditingView
from models.feedback import FeedbackConfig, OpenOptions
from services.api_client import ApiClient, ApiSettings, log_diagnostics
from services.feedback_service import FeedbackService
from services.session_service import SessionService

logger = logging.getLogger(__name__)

COMMAND_HELP = (
    "Commands: rate N | type NAME | comment TEXT | submit | edit | close | home | help"
)

_SIMPLE_COMMANDS = {
    "submit": DialogAction.SUBMIT,
    "edit": DialogAction.EDIT,
    "close": DialogAction.CLOSE,
    "home": DialogAction.BACK_HOME,
}


def parse_delay(value: str) -> int | None:
    """argparse type for --auto-close: milliseconds or 'none'."""
    if value.strip().lower() in ("none", "off", "null"):
        return None
    try:
        delay = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected milliseconds or 'none', got {value!r}")
    if delay < 0:
        raise argparse.ArgumentTypeError("delay must be non-negative")
    return delay


def parse_meta(pairs: list[str]) -> dict[str, str]:
    """Turn repeated KEY=VALUE arguments into a dict."""
    meta = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"meta entries must look like KEY=VALUE, got {pair!r}")
        meta[key.strip()] = value.strip()
    return meta


def parse_command(line: str) -> tuple[DialogAction, Any] | None:
    """Map one line of input onto a dialog gesture.

    Raises:
        ValueError: If "rate" is not followed by a number.
    """
    verb, _, argument = line.strip().partition(" ")
    verb = verb.lower()
    argument = argument.strip()

    if verb == "rate":
        return DialogAction.RATE, int(argument)
    if verb == "type":
        return DialogAction.SET_TYPE, argument
    if verb == "comment":
        return DialogAction.SET_COMMENT, argument
    if verb in _SIMPLE_COMMANDS:
        return _SIMPLE_COMMANDS[verb], None
    return None


def run_dialog(
    dialog: FeedbackDialog,
    read_line: Callable[[str], str] | None = None,
    write: Callable[[str], Any] | None = None,
) -> bool:
    """Drive the dialog until it closes. Returns True if feedback was accepted."""
    read_line = read_line or input
    write = write or print
    while dialog.service.is_open:
        view = dialog.render()
        write(render_text(view))

        try:
            line = read_line("> ")
        except EOFError:
            dialog.service.close()
            break

        if not line.strip():
            continue
        if line.strip().lower() == "help":
            write(COMMAND_HELP)
            continue

        try:
            command = parse_command(line)
        except ValueError as e:
            write(f"Invalid input: {e}")
            continue
        if command is None:
            write(f"Unknown command. {COMMAND_HELP}")
            continue

        action, value = command
        if (
            action == DialogAction.SUBMIT
            and isinstance(view, EditingView)
            and not view.submit.enabled
        ):
            write("Submit is disabled: add a rating (and a comment if required).")
            continue

        try:
            dialog.dispatch(action, value)
        except ValueError as e:
            write(f"Invalid input: {e}")

    return dialog.service.last_submitted is not None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Send AgriConnect feedback from the terminal"
    )
    parser.add_argument("--base-url", help="Backend base URL (default: $API_BASE_URL)")
    parser.add_argument("--prefix", help="API path prefix (default: $API_PATH_PREFIX)")
    parser.add_argument("--title", default="Share your feedback")
    parser.add_argument(
        "--subtitle", default="Help us improve AgriConnect by sharing your experience"
    )
    parser.add_argument(
        "--auto-close",
        type=parse_delay,
        default=None,
        help="Close this many ms after success, or 'none' (default)",
    )
    parser.add_argument(
        "--strict-comment", action="store_true", help="Require a comment"
    )
    parser.add_argument(
        "--require-login", action="store_true", help="Refuse anonymous feedback"
    )
    parser.add_argument(
        "--summary", action="store_true", help="Show a recap after submitting"
    )
    parser.add_argument(
        "--meta",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra payload field (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        meta = parse_meta(args.meta)
    except ValueError as e:
        parser.error(str(e))

    settings = ApiSettings.from_env()
    if args.base_url is not None:
        settings = dataclasses.replace(settings, base_url=args.base_url)
    if args.prefix is not None:
        settings = dataclasses.replace(settings, path_prefix=args.prefix)
    log_diagnostics(settings)

    client = ApiClient(settings)
    session = SessionService(client)
    service = FeedbackService(
        client,
        config=FeedbackConfig(
            strict_comment_required=args.strict_comment,
            require_authenticated_user=args.require_login,
        ),
        user_provider=session.current_user,
    )
    dialog = FeedbackDialog(service)

    service.open(
        OpenOptions(
            title=args.title,
            subtitle=args.subtitle,
            show_rating_summary=args.summary,
            auto_close_delay=args.auto_close,
            meta=meta,
        )
    )
    print(COMMAND_HELP)
    submitted = run_dialog(dialog)

    if submitted:
        logger.info(f"Feedback recorded (id={service.last_submitted_id})")
        return 0
    logger.info("No feedback submitted")
    return 1


if __name__ == "__main__":
    sys.exit(main())
