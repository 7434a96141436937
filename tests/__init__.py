"""
Test suite for AIME.

This package contains tests for all core functionality including:
- Text chunking, truncation and token accounting
- Prompt building and the error taxonomy
- Language model sessions against fake OpenAI-compatible clients
- The prebuilt generation helpers
- Speech transcription and the live transcriber
- Configuration, logging and the command-line interface
"""
