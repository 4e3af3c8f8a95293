"""
Unit tests for the pattern classifiers.

Tests:
- Conversational gate (greetings, thanks, farewells)
- Follow-up detection
- Protocol conformance
"""

import pytest

from opschat.agents.classifier import (
    ConversationalGate,
    FollowUpDetector,
    PatternClassifier,
    QueryClassifier,
)


class TestConversationalGate:
    """Test suite for the small-talk gate."""

    @pytest.fixture
    def gate(self):
        return ConversationalGate()

    @pytest.mark.parametrize(
        "query",
        [
            "hi",
            "Hello there",
            "HEY!",
            "  greetings  ",
            "how are you doing?",
            "what's up",
            "thanks a lot",
            "Thank you",
            "thx",
            "bye",
            "goodbye for now",
            "see you tomorrow",
        ],
    )
    def test_matches_small_talk(self, gate, query):
        assert gate.matches(query) is True

    @pytest.mark.parametrize(
        "query",
        [
            "How many jobs are pending?",
            "show me customers who said hi",
            "highest paying jobs",
            "history of bookings for Rahul",
            "list all bookings",
            "",
        ],
    )
    def test_database_questions_pass(self, gate, query):
        assert gate.matches(query) is False


class TestFollowUpDetector:
    """Test suite for follow-up detection."""

    @pytest.fixture
    def detector(self):
        return FollowUpDetector()

    @pytest.mark.parametrize(
        "query",
        [
            "what about last week?",
            "How about Priyanka?",
            "and the pending ones?",
            "also include bookings",
            "more",
            "show me more",
            "who handled them?",
            "when is that scheduled?",
            "where do those customers live",
            "how many of them are pending",
            "is it done?",
        ],
    )
    def test_detects_follow_ups(self, detector, query):
        assert detector.matches(query) is True

    @pytest.mark.parametrize(
        "query",
        [
            "show me all bookings in March",
            "List every customer in Mumbai",
            "Count pending jobs",
            "anderson's jobs",
            "bookings for itemized invoices",
        ],
    )
    def test_standalone_questions(self, detector, query):
        assert detector.matches(query) is False


def test_classifiers_satisfy_protocol():
    assert isinstance(ConversationalGate(), QueryClassifier)
    assert isinstance(FollowUpDetector(), QueryClassifier)


def test_custom_patterns():
    classifier = PatternClassifier(patterns=(r"^ping$",))
    assert classifier.matches("PING")
    assert not classifier.matches("ping pong")
