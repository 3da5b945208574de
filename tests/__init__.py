"""
Tests for the table booking voice assistant.

Running Tests:
    # Run all unit tests
    pytest tests/unit -v

    # Run a single module
    pytest tests/unit/test_conversation_flow.py -v

Unit tests need no Redis, Deepgram, ElevenLabs or Google credentials:
Redis is replaced by an in-memory fake and HTTP collaborators are mocked.
"""
