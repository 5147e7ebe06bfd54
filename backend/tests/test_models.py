"""Tests for the pydantic models."""

import pytest
from pydantic import ValidationError

from models.feedback import (
    DEFAULT_FEEDBACK_TYPE,
    FeedbackDraft,
    FeedbackSubmission,
    FeedbackType,
    OpenOptions,
)
from models.user import ActingUser


class TestFeedbackType:
    """Test feedback type parsing and labels."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("user-experience", FeedbackType.USER_EXPERIENCE),
            ("user_experience", FeedbackType.USER_EXPERIENCE),
            ("userExperience", FeedbackType.USER_EXPERIENCE),
            ("User Experience", FeedbackType.USER_EXPERIENCE),
            ("performance", FeedbackType.PERFORMANCE),
            ("product_service", FeedbackType.PRODUCT_SERVICE),
            ("Product / Service", FeedbackType.PRODUCT_SERVICE),
            ("  transactional ", FeedbackType.TRANSACTIONAL),
        ],
    )
    def test_parse(self, value, expected):
        """Test that loose spellings resolve to the right member."""
        assert FeedbackType.parse(value) == expected

    @pytest.mark.parametrize("value", ["complaint", "", None, 3])
    def test_parse_rejects_unknown(self, value):
        """Test that unknown values raise ValueError."""
        with pytest.raises(ValueError):
            FeedbackType.parse(value)

    def test_backend_value(self):
        """Test the snake_case backend spelling."""
        assert FeedbackType.PRODUCT_SERVICE.backend_value == "product_service"
        assert FeedbackType.PERFORMANCE.backend_value == "performance"

    def test_every_type_has_a_label(self):
        """Test labels shown in the selector."""
        assert [t.label for t in FeedbackType] == [
            "User experience",
            "Performance",
            "Product / Service",
            "Transactional",
        ]


class TestFeedbackDraft:
    """Test draft validation."""

    def test_defaults(self):
        """Test an unrated, empty draft."""
        draft = FeedbackDraft()

        assert draft.rating == 0
        assert draft.comment == ""
        assert draft.feedback_type == DEFAULT_FEEDBACK_TYPE
        assert draft.meta == {}

    def test_rating_bounds_checked_on_assignment(self):
        """Test that assignments are validated."""
        draft = FeedbackDraft()

        with pytest.raises(ValidationError):
            draft.rating = 6

    def test_comment_length_limit(self):
        """Test the 1000 character limit."""
        with pytest.raises(ValidationError):
            FeedbackDraft(comment="x" * 1001)

    def test_type_accepts_backend_spelling(self):
        """Test that the validator parses feedback types."""
        assert FeedbackDraft(feedback_type="product_service").feedback_type == (
            FeedbackType.PRODUCT_SERVICE
        )

    def test_meta_not_shared(self):
        """Test that default meta dicts are independent."""
        first, second = FeedbackDraft(), FeedbackDraft()
        first.meta["orderId"] = 1

        assert second.meta == {}


class TestOpenOptions:
    """Test dialog open options."""

    def test_defaults(self):
        """Test default copy and auto-close delay."""
        options = OpenOptions()

        assert options.title == "Session feedback"
        assert options.subtitle == "Please rate your experience below"
        assert options.submit_label == "Submit feedback"
        assert options.home_label == "Back home"
        assert options.auto_close_delay == 2000
        assert options.show_rating_summary is False
        assert options.on_submitted is None

    def test_auto_close_can_be_disabled(self):
        """Test that None is a valid delay."""
        assert OpenOptions(auto_close_delay=None).auto_close_delay is None

    def test_negative_auto_close_rejected(self):
        """Test that delays cannot be negative."""
        with pytest.raises(ValidationError):
            OpenOptions(auto_close_delay=-1)

    @pytest.mark.parametrize(
        "meta,expected",
        [
            ({}, FeedbackType.USER_EXPERIENCE),
            ({"type": "performance"}, FeedbackType.PERFORMANCE),
            ({"feedbackType": "transactional"}, FeedbackType.TRANSACTIONAL),
            ({"type": "performance", "feedbackType": "transactional"}, FeedbackType.PERFORMANCE),
            ({"type": "nonsense"}, FeedbackType.USER_EXPERIENCE),
        ],
    )
    def test_initial_feedback_type(self, meta, expected):
        """Test the type hint carried in meta."""
        assert OpenOptions(meta=meta).initial_feedback_type() == expected

    def test_callbacks_are_stored(self):
        """Test that plain callables are accepted."""
        calls = []
        options = OpenOptions(on_closed=lambda: calls.append("closed"))

        options.on_closed()

        assert calls == ["closed"]


class TestFeedbackSubmission:
    """Test the outgoing payload model."""

    def test_rating_must_be_positive(self):
        """Test that an unrated draft cannot become a submission."""
        with pytest.raises(ValidationError):
            FeedbackSubmission(
                rating=0, feedback_type="performance", subject="performance", user_type="farmer"
            )

    def test_optional_user_id_dropped(self):
        """Test that anonymous submissions omit user_id."""
        submission = FeedbackSubmission(
            rating=3, feedback_type="performance", subject="performance", user_type="anonymous"
        )

        assert "user_id" not in submission.model_dump(exclude_none=True)


class TestActingUser:
    """Test the session user model."""

    @pytest.mark.parametrize("role", ["farmer", "supplier", "driver", "admin"])
    def test_known_roles(self, role):
        """Test that backend roles are kept as user types."""
        assert ActingUser(id=1, role=role).user_type == role

    @pytest.mark.parametrize("role", [None, "", "consumer", "Farmer"])
    def test_other_roles_are_anonymous(self, role):
        """Test the anonymous fallback."""
        assert ActingUser(id=1, role=role).user_type == "anonymous"

    def test_id_may_be_string(self):
        """Test string identifiers."""
        assert ActingUser(id="u-9").id == "u-9"
