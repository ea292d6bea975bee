"""Tests for timeline sentence formatting."""

import os
import sys

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from formatters import event_verb, format_event_sentence, get_surname
from models import LifeEvent


class TestEventSentences:
    """Tests for format_event_sentence."""

    def test_birth_with_date_and_place(self):
        event = LifeEvent(id="e", type="Birth", date="12 JUN 1900", place="Boston")
        assert format_event_sentence("Jane Doe", event) == "Jane Doe was born on June 12, 1900, in Boston."

    def test_birth_without_details(self):
        event = LifeEvent(id="e", type="Birth")
        assert format_event_sentence("Jane Doe", event) == "Jane Doe was born."

    def test_marriage(self):
        event = LifeEvent(id="e", type="Marriage", date="JUN 1925", place="Boston", spouse_name="John Roe")
        assert format_event_sentence("Jane Doe", event) == "Jane Doe married John Roe in Boston on June 1925."

    def test_marriage_unknown_spouse(self):
        event = LifeEvent(id="e", type="Marriage", date="1925")
        assert format_event_sentence("Jane Doe", event) == "Jane Doe married Unknown on 1925."

    def test_generic_event(self):
        event = LifeEvent(id="e", type="Census", date="1940", place="Ohio")
        assert format_event_sentence("Jane Doe", event) == "Jane Doe appears in the census on 1940 in Ohio."

    def test_unknown_type_uses_default_verb(self):
        event = LifeEvent(id="e", type="Probate", place="Ohio")
        assert format_event_sentence("Jane Doe", event) == "Jane Doe had a recorded event in Ohio."


class TestHelpers:
    """Tests for small name and verb helpers."""

    def test_event_verb(self):
        assert event_verb("Death") == "passed away"
        assert event_verb("Nonexistent") == "had a recorded event"

    def test_get_surname(self):
        assert get_surname("Jane Mary Doe") == "Doe"
        assert get_surname("Cher") == "Cher"
        assert get_surname("") == ""
