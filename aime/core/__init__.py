"""
Core functionality for AIME.

This package contains the main logic for:
- Schema-constrained generation sessions against an OpenAI-compatible backend
- Prebuilt helpers for question answering, summaries, action items and timelines
- Text chunking, prompt building and token accounting
- Speech-to-text for audio files and live microphone recordings
- Configuration, logging and the error taxonomy
"""
