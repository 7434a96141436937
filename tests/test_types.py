"""
Tests for the public value types.
"""

from datetime import datetime

import pytest
from pydantic import ValidationError

from aime.core.types import ActionItem, Priority, Timeline, TimelineItem, TokenUsage


class TestPriority:
    """Test priority labels and raw values."""

    @pytest.mark.parametrize("priority", list(Priority))
    def test_round_trip(self, priority):
        assert Priority(priority.value) is priority
        assert Priority.from_label(priority.label) is priority

    def test_labels(self):
        assert [p.label for p in Priority] == ["Critical", "High", "Medium", "Low", "Unspecified"]
        assert [p.value for p in Priority] == ["critical", "high", "medium", "low", "unspecified"]

    def test_from_label_is_case_insensitive(self):
        assert Priority.from_label(" CRITICAL ") is Priority.CRITICAL
        assert Priority.from_label("low") is Priority.LOW

    def test_unknown_label_raises(self):
        with pytest.raises(ValueError):
            Priority.from_label("urgent")


class TestRecords:
    """Test immutable records."""

    def test_action_item_defaults(self):
        item = ActionItem(title="Send the deck")
        assert item.priority is None
        assert item.owner is None
        assert item.due_date is None
        assert item.index == 0

    def test_action_item_is_frozen(self):
        item = ActionItem(title="Send the deck", due_date=datetime(2025, 3, 1))
        with pytest.raises(ValidationError):
            item.title = "Other"

    def test_action_items_get_unique_ids(self):
        assert ActionItem(title="a").id != ActionItem(title="a").id

    def test_timeline_keeps_order(self):
        items = [TimelineItem(title="Design", date="next week"), TimelineItem(title="Launch", date="2025-06-01", priority=Priority.HIGH)]
        timeline = Timeline(items=items, extraction_notes="Dates are relative")
        assert [item.title for item in timeline.items] == ["Design", "Launch"]
        assert timeline.items[1].priority is Priority.HIGH

    def test_token_usage_total(self):
        assert TokenUsage(input_tokens=3, output_tokens=4).total_tokens == 7
