"""
Test doubles shared by the test modules.

Nothing here talks to the network or to audio hardware.
"""

from types import SimpleNamespace
from typing import Any, Callable, List, Optional, Union

from aime.core.session import partial_model
from aime.core.types import Transcript

Snapshots = Union[List[dict], Callable[[str], List[dict]]]


class FakeSession:
    """
    Stand-in for LanguageModelSession that replays canned snapshots.

    Args:
        snapshots: Dicts validated into the partial output model, or a callable
            building them from the prompt
        error: Raised instead of streaming when set
    """

    def __init__(self, snapshots: Optional[Snapshots] = None, error: Optional[BaseException] = None, instructions: str = ""):
        self.snapshots = snapshots or []
        self.error = error
        self.instructions = instructions
        self.prompts: List[str] = []

    async def stream_response(self, prompt, output_type):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        snapshots = self.snapshots(prompt) if callable(self.snapshots) else self.snapshots
        partial_type = partial_model(output_type)
        for snapshot in snapshots:
            yield partial_type.model_validate(snapshot)


class SessionFactory:
    """Records the instructions of every session it builds."""

    def __init__(self, snapshots: Optional[Snapshots] = None, error: Optional[BaseException] = None):
        self.snapshots = snapshots
        self.error = error
        self.sessions: List[FakeSession] = []

    def __call__(self, instructions: str) -> FakeSession:
        session = FakeSession(self.snapshots, self.error, instructions=instructions)
        self.sessions.append(session)
        return session


def completion(parsed: Any = None, refusal: Optional[str] = None) -> SimpleNamespace:
    """Build an object shaped like a parsed chat completion."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(parsed=parsed, refusal=refusal))])


class FakeStream:
    def __init__(self, events: List[Any], final: SimpleNamespace):
        self.events = events
        self.final = final

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            yield event

    async def get_final_completion(self):
        return self.final


class FakeStreamManager:
    def __init__(self, stream: FakeStream):
        self.stream = stream

    async def __aenter__(self):
        return self.stream

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeCompletions:
    """
    Mimics ``client.chat.completions`` for parse and stream calls.

    Args:
        parsed: Final parsed output
        deltas: Partial dicts emitted as content.delta events while streaming
        refusal: Refusal message of the final completion
        error: Raised by parse and stream when set
    """

    def __init__(self, parsed: Any = None, deltas: Optional[List[dict]] = None, refusal: Optional[str] = None, error: Optional[BaseException] = None):
        self.parsed = parsed
        self.deltas = deltas or []
        self.refusal = refusal
        self.error = error
        self.calls: List[dict] = []

    async def parse(self, **params):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return completion(self.parsed, self.refusal)

    def stream(self, **params):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        events = [SimpleNamespace(type="content.delta", parsed=delta) for delta in self.deltas]
        events.append(SimpleNamespace(type="content.done", parsed=None))
        return FakeStreamManager(FakeStream(events, completion(self.parsed, self.refusal)))


def fake_openai(completions: FakeCompletions) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class FakeSpeech:
    """Transcribes every window as "window <n>" unless told to fail."""

    def __init__(self, error: Optional[BaseException] = None):
        self.error = error
        self.language = None
        self.windows: List[int] = []

    async def transcribe_samples(self, samples, sample_rate):
        if self.error is not None:
            raise self.error
        self.windows.append(len(samples))
        return Transcript(text=f"window {len(self.windows)}")


class FakeRecorder:
    """Recorder that never touches audio hardware; tests push blocks through on_audio."""

    def __init__(self, configuration, on_audio, start_error: Optional[BaseException] = None):
        self.configuration = configuration
        self.on_audio = on_audio
        self.start_error = start_error
        self.path = None
        self.started = False
        self.paused = False
        self.stopped = False

    def start(self, path=None):
        if self.start_error is not None:
            raise self.start_error
        self.path = path
        self.started = True

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def stop(self):
        self.stopped = True
