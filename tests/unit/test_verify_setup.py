"""Tests for the setup verification script."""

import importlib.util
from pathlib import Path

import pytest

SCRIPT = Path(__file__).parents[2] / "scripts" / "verify_setup.py"


@pytest.fixture
def verify_setup():
    module_spec = importlib.util.spec_from_file_location("verify_setup", SCRIPT)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


class TestVerifySetup:
    """Test configuration checks."""

    def test_required_vars(self, verify_setup, monkeypatch):
        monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
        monkeypatch.setenv("DEEPGRAM_API_KEY", "dg-1234567890abcdef")
        monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)

        results = verify_setup.check_required_vars()

        assert results == {
            "REDIS_URL": True,
            "DEEPGRAM_API_KEY": True,
            "ELEVENLABS_API_KEY": False,
        }

    def test_mask(self, verify_setup):
        assert verify_setup.mask("dg-1234567890abcdef") == "dg-1...cdef"
        assert verify_setup.mask("short") == "***"

    def test_claude_backend_needs_key(self, verify_setup, monkeypatch):
        monkeypatch.setenv("NLU_BACKEND", "claude")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        assert verify_setup.check_nlu_backend() is False

    def test_sheets_vars(self, verify_setup, monkeypatch):
        for var in verify_setup.SHEETS_VARS:
            monkeypatch.setenv(var, "x")

        assert verify_setup.check_sheets_vars() is True
