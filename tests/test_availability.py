"""
Tests for model and audio availability checks.
"""

import asyncio
import sys
from types import SimpleNamespace

import httpx
import openai
import pytest

from aime.core.availability import AudioHelpers, ModelAvailability


class FakeModels:
    def __init__(self, available):
        self.available = set(available)
        self.calls = []

    async def retrieve(self, model):
        self.calls.append(model)
        if model not in self.available:
            request = httpx.Request("GET", f"http://localhost:11434/v1/models/{model}")
            raise openai.NotFoundError("model not found", response=httpx.Response(404, request=request), body=None)
        return SimpleNamespace(id=model)


def make_availability(*available):
    models = FakeModels(available)
    return ModelAvailability(client=SimpleNamespace(models=models)), models


def test_available_model():
    availability, models = make_availability("gpt-4o-mini")
    assert asyncio.run(availability.is_available())
    assert asyncio.run(availability.unavailability_reason("gpt-4o-mini")) is None
    assert models.calls[0] == "gpt-4o-mini"


def test_unavailable_model_reason():
    availability, _ = make_availability()
    reason = asyncio.run(availability.unavailability_reason("llama3.1"))
    assert reason == "The language model is not available. (llama3.1)"
    assert not asyncio.run(availability.is_available("llama3.1"))


def test_transcription_availability():
    availability, models = make_availability("whisper-1")
    assert asyncio.run(availability.is_transcription_model_installed())
    assert asyncio.run(availability.is_transcription_available("en-US"))
    assert asyncio.run(availability.is_transcription_available())

    calls_before = len(models.calls)
    assert not asyncio.run(availability.is_transcription_available("xx"))
    assert len(models.calls) == calls_before


def test_optimal_audio_format():
    assert AudioHelpers.get_optimal_audio_format() == {"sample_rate": 16000, "channels": 1, "dtype": "float32"}


class FakePortAudioError(Exception):
    pass


def fake_sounddevice(device=None, error=None):
    def query_devices(device_name=None, kind=None):
        if error is not None:
            raise error
        return device

    return SimpleNamespace(query_devices=query_devices, check_input_settings=lambda **_: None, PortAudioError=FakePortAudioError)


@pytest.mark.parametrize(
    "module,expected",
    [
        (fake_sounddevice({"name": "Built-in Microphone", "max_input_channels": 1}), True),
        (fake_sounddevice({"name": "Speakers", "max_input_channels": 0}), False),
        (fake_sounddevice(error=FakePortAudioError("no device")), False),
        (fake_sounddevice(error=ValueError("No input device matching")), False),
    ],
)
def test_microphone_check(monkeypatch: pytest.MonkeyPatch, module, expected):
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    assert AudioHelpers.check_microphone_permission() is expected
