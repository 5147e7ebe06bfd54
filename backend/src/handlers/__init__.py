"""Entry points for the AgriConnect feedback dialog."""

from .feedback_dialog import FeedbackDialog, render_text

__all__ = [
    "FeedbackDialog",
    "render_text",
]
