"""Services for the AgriConnect feedback client."""

from .api_client import ApiClient, ApiError, ApiSettings
from .feedback_service import FeedbackService
from .session_service import SessionService

__all__ = [
    "ApiClient",
    "ApiError",
    "ApiSettings",
    "FeedbackService",
    "SessionService",
]
