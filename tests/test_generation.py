"""
Tests for the prebuilt generation helpers using fake sessions.
"""

import asyncio
from datetime import datetime

import pytest

from aime.core.action_items import ActionItemsExtractor, parse_due_date
from aime.core.answer import INSUFFICIENT_INFORMATION_ANSWER, QuestionAnswerer
from aime.core.config import LoggingConfiguration
from aime.core.errors import (
    GenerationGuardrailViolation,
    GenerationInvalidInput,
    GenerationUnknownError,
    TextProcessingEmptyInput,
)
from aime.core.log import aime_logger
from aime.core.session import LanguageModelSession
from aime.core.summarize import Summarizer, SummaryStyle
from aime.core.timeline import TimelineExtractor
from aime.core.types import Priority

from .fakes import FakeCompletions, SessionFactory, fake_openai

TRANSCRIPT = "Ana will send the deck by March 1st. Ben owns the launch, which is high priority."


async def collect(stream):
    return [item async for item in stream]


def real_sessions(completions: FakeCompletions):
    """Session factory building real sessions over fake completions."""
    return lambda instructions: LanguageModelSession(instructions=instructions, client=fake_openai(completions), keep_history=False)


class TestQuestionAnswerer:
    """Test question answering."""

    def test_answer_with_citation(self):
        factory = SessionFactory(
            [
                {"answer": "Fri"},
                {"answer": "Friday", "citation": "The demo moved to Friday", "insufficient_information": False},
            ]
        )
        answer = asyncio.run(QuestionAnswerer(session_factory=factory).ask("When is the demo?", "The demo moved to Friday."))

        assert answer == 'Friday\n\nCitation: "The demo moved to Friday"'
        assert "Question: When is the demo?" in factory.sessions[0].prompts[0]
        assert "The demo moved to Friday." in factory.sessions[0].prompts[0]

    def test_answer_without_citation(self):
        factory = SessionFactory([{"answer": "Friday", "citation": "quote", "insufficient_information": False}])
        answer = asyncio.run(QuestionAnswerer(session_factory=factory).ask("When?", "context", include_citation=False))
        assert answer == "Friday"

    def test_insufficient_information(self):
        factory = SessionFactory([{"answer": "", "citation": None, "insufficient_information": True}])
        answer = asyncio.run(QuestionAnswerer(session_factory=factory).ask("Who?", "context"))
        assert answer == INSUFFICIENT_INFORMATION_ANSWER

    def test_custom_instructions(self):
        factory = SessionFactory([{"answer": "ok", "citation": None, "insufficient_information": False}])
        asyncio.run(QuestionAnswerer(session_factory=factory).ask("Q?", "context", instructions="Answer in French."))
        assert factory.sessions[0].instructions == "Answer in French."

    def test_empty_question(self):
        factory = SessionFactory()
        with pytest.raises(GenerationInvalidInput):
            asyncio.run(QuestionAnswerer(session_factory=factory).ask("  ", "context"))
        assert factory.sessions == []

    def test_empty_context(self):
        factory = SessionFactory()
        with pytest.raises(TextProcessingEmptyInput):
            asyncio.run(QuestionAnswerer(session_factory=factory).ask("Q?", "\n\t"))
        assert factory.sessions == []

    def test_streaming(self):
        factory = SessionFactory([{"answer": "Fri"}, {"answer": "Friday"}])
        answers = asyncio.run(collect(QuestionAnswerer(session_factory=factory).ask_streaming("When?", "context")))
        assert answers == ["Fri", "Friday"]

    def test_streaming_with_citation(self):
        snapshots = [{"answer": "Fri"}, {"answer": "Friday", "citation": "The demo moved to Friday"}]
        answerer = QuestionAnswerer(session_factory=SessionFactory(snapshots))

        with_citation = asyncio.run(collect(answerer.ask_streaming("When?", "context", include_citation=True)))
        without_citation = asyncio.run(collect(answerer.ask_streaming("When?", "context")))

        assert with_citation == ["Fri", "Friday", 'Friday\n\nCitation: "The demo moved to Friday"']
        assert without_citation == ["Fri", "Friday"]

    def test_taxonomy_errors_propagate(self):
        factory = SessionFactory(error=GenerationGuardrailViolation())
        with pytest.raises(GenerationGuardrailViolation):
            asyncio.run(QuestionAnswerer(session_factory=factory).ask("Q?", "context"))

    def test_other_errors_become_unknown(self):
        factory = SessionFactory(error=RuntimeError("socket closed"))
        with pytest.raises(GenerationUnknownError) as exc_info:
            asyncio.run(QuestionAnswerer(session_factory=factory).ask("Q?", "context"))
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestSummarizer:
    """Test summaries, including chunked processing of long texts."""

    def test_summary(self):
        factory = SessionFactory([{"summary": "Short"}, {"summary": "Short summary."}])
        summary = asyncio.run(Summarizer(session_factory=factory).generate(TRANSCRIPT))
        assert summary == "Short summary."

    def test_style_shapes_instructions(self):
        factory = SessionFactory([{"summary": "- one"}])
        asyncio.run(Summarizer(session_factory=factory).generate(TRANSCRIPT, style=SummaryStyle.BULLET_POINTS))
        assert SummaryStyle.BULLET_POINTS.description in factory.sessions[0].instructions

    def test_max_length_truncates(self):
        factory = SessionFactory([{"summary": "abcdefghij"}])
        summary = asyncio.run(Summarizer(session_factory=factory).generate(TRANSCRIPT, max_length=8))
        assert summary == "abcde..."

    def test_long_text_is_summarized_per_chunk(self):
        paragraphs = [f"paragraph number {i:03d}" for i in range(4)]
        text = "\n".join(paragraphs)
        factory = SessionFactory(lambda prompt: [{"summary": f"S{sum(p in prompt for p in paragraphs)}"}])

        summary = asyncio.run(Summarizer(session_factory=factory, max_chunk_size=50).generate(text))

        assert summary == "S2\nS2"
        assert len(factory.sessions) == 2

    def test_empty_text(self):
        with pytest.raises(TextProcessingEmptyInput):
            asyncio.run(Summarizer(session_factory=SessionFactory()).generate("   "))

    def test_streaming_applies_max_length(self):
        factory = SessionFactory([{"summary": "abc"}, {"summary": "abcdefghij"}])
        summaries = asyncio.run(collect(Summarizer(session_factory=factory).generate_streaming(TRANSCRIPT, max_length=8)))
        assert summaries == ["abc", "abcde..."]


class TestActionItemsExtractor:
    """Test action item extraction."""

    ITEMS = [
        {"title": "Send the deck", "priority": "medium", "owner": "Ana", "due_date": "2025-03-01"},
        {"title": "Own the launch", "priority": "high", "owner": "Ben", "due_date": "next Friday"},
        {"title": "Book a room", "priority": None, "owner": None, "due_date": None},
    ]

    def test_items_are_limited_and_indexed(self):
        factory = SessionFactory([{"action_items": self.ITEMS}])
        items = asyncio.run(ActionItemsExtractor(session_factory=factory).extract(TRANSCRIPT, max_items=2))

        assert [item.title for item in items] == ["Send the deck", "Own the launch"]
        assert [item.index for item in items] == [0, 1]
        assert "at most 2" in factory.sessions[0].instructions

    def test_optional_fields_are_opt_in(self):
        factory = SessionFactory([{"action_items": self.ITEMS}])
        items = asyncio.run(ActionItemsExtractor(session_factory=factory).extract(TRANSCRIPT))

        assert len(items) == 3
        assert all(item.priority is None and item.owner is None and item.due_date is None for item in items)

    def test_optional_fields(self):
        factory = SessionFactory([{"action_items": self.ITEMS}])
        items = asyncio.run(
            ActionItemsExtractor(session_factory=factory).extract(TRANSCRIPT, include_priority=True, include_owner=True, include_due_date=True)
        )

        assert items[0].priority is Priority.MEDIUM
        assert items[0].owner == "Ana"
        assert items[0].due_date == datetime(2025, 3, 1)
        assert items[1].priority is Priority.HIGH
        assert items[1].due_date is None
        assert items[2].priority is None

    def test_no_output_gives_empty_list(self):
        items = asyncio.run(ActionItemsExtractor(session_factory=SessionFactory([])).extract(TRANSCRIPT))
        assert items == []

    def test_streaming(self):
        factory = SessionFactory([{"action_items": self.ITEMS[:1]}, {"action_items": self.ITEMS}])
        snapshots = asyncio.run(collect(ActionItemsExtractor(session_factory=factory).extract_streaming(TRANSCRIPT, max_items=2)))
        assert [len(items) for items in snapshots] == [1, 2]

    def test_streaming_items_still_being_generated(self):
        """Snapshots with an unfinished last item still show the items generated so far."""
        deltas = [
            {"action_items": []},
            {"action_items": [{}]},
            {"action_items": [{"title": "Send the deck"}]},
            {"action_items": [{"title": "Send the deck", "priority": "medium"}]},
            {"action_items": [self.ITEMS[0], {"title": "Own the launch"}]},
        ]
        completions = FakeCompletions(parsed={"action_items": self.ITEMS[:2]}, deltas=deltas)
        extractor = ActionItemsExtractor(session_factory=real_sessions(completions))

        snapshots = asyncio.run(collect(extractor.extract_streaming(TRANSCRIPT)))

        assert [len(items) for items in snapshots] == [0, 0, 1, 1, 2, 2]
        assert snapshots[2][0].title == "Send the deck"
        assert [item.title for item in snapshots[-1]] == ["Send the deck", "Own the launch"]

    def test_empty_text(self):
        with pytest.raises(TextProcessingEmptyInput):
            asyncio.run(ActionItemsExtractor(session_factory=SessionFactory()).extract(""))

    @pytest.mark.parametrize(
        "value,expected",
        [("2025-03-01", datetime(2025, 3, 1)), ("2025-03-01T09:30:00", datetime(2025, 3, 1, 9, 30)), ("next Friday", None), (None, None), ("", None)],
    )
    def test_parse_due_date(self, value, expected):
        assert parse_due_date(value) == expected


class TestTimelineExtractor:
    """Test timeline extraction."""

    RESPONSE = {
        "timeline": [
            {"title": "Design review", "date": "next week", "owner": "Ana", "status": "planned", "priority": "high"},
            {"title": "Launch", "date": "2025-06-01", "owner": None, "status": None, "priority": None},
        ],
        "extraction_notes": "Launch owner unclear",
    }

    def test_timeline(self):
        factory = SessionFactory([self.RESPONSE])
        timeline = asyncio.run(TimelineExtractor(session_factory=factory).extract(TRANSCRIPT))

        assert [item.title for item in timeline.items] == ["Design review", "Launch"]
        assert timeline.items[0].priority is Priority.HIGH
        assert timeline.items[0].status == "planned"
        assert timeline.items[1].priority is None
        assert timeline.extraction_notes == "Launch owner unclear"

    def test_excluded_fields(self):
        factory = SessionFactory([self.RESPONSE])
        timeline = asyncio.run(
            TimelineExtractor(session_factory=factory).extract(TRANSCRIPT, include_status=False, include_priority=False, include_owner=False)
        )
        first = timeline.items[0]
        assert (first.owner, first.status, first.priority) == (None, None, None)
        assert first.date == "next week"

    def test_empty_timeline(self):
        factory = SessionFactory([{"timeline": None, "extraction_notes": "There are no tasks or timeline"}])
        timeline = asyncio.run(TimelineExtractor(session_factory=factory).extract(TRANSCRIPT))
        assert timeline.items == []
        assert timeline.extraction_notes == "There are no tasks or timeline"

    def test_streaming(self):
        partial = {"timeline": self.RESPONSE["timeline"][:1]}
        factory = SessionFactory([partial, self.RESPONSE])
        timelines = asyncio.run(collect(TimelineExtractor(session_factory=factory).extract_streaming(TRANSCRIPT)))
        assert [len(t.items) for t in timelines] == [1, 2]

    def test_streaming_items_still_being_generated(self):
        deltas = [{"timeline": [{"title": "Design review"}]}, {"timeline": [{"title": "Design review", "date": "next week"}, {}]}]
        completions = FakeCompletions(parsed=self.RESPONSE, deltas=deltas)
        extractor = TimelineExtractor(session_factory=real_sessions(completions))

        timelines = asyncio.run(collect(extractor.extract_streaming(TRANSCRIPT)))

        assert [len(t.items) for t in timelines] == [1, 1, 2]
        assert (timelines[0].items[0].title, timelines[0].items[0].date) == ("Design review", "")
        assert timelines[1].items[0].date == "next week"

    @pytest.mark.parametrize("log_performance", [True, False])
    def test_elapsed_time_follows_log_performance(self, log_performance):
        entries = []
        aime_logger.update_configuration(LoggingConfiguration(custom_logger=entries.append, log_performance=log_performance))

        asyncio.run(TimelineExtractor(session_factory=SessionFactory([self.RESPONSE])).extract(TRANSCRIPT))

        success = [entry for entry in entries if entry.message == "Timeline extracted"][0]
        assert success.metadata["item_count"] == 2
        assert ("elapsed_time" in success.metadata) is log_performance

    def test_errors_are_logged_and_raised(self):
        factory = SessionFactory(error=GenerationGuardrailViolation())
        with pytest.raises(GenerationGuardrailViolation):
            asyncio.run(TimelineExtractor(session_factory=factory).extract(TRANSCRIPT))
