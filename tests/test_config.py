"""
Smoke tests for config / settings loading.
Run: python -m pytest tests/ -v
"""
import sys
import os
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from startup_companion.config import get_settings, _is_placeholder


class TestIsPlaceholder:
    def test_empty_string_is_placeholder(self):
        assert _is_placeholder("")

    def test_angle_bracket_is_placeholder(self):
        assert _is_placeholder("<your-key-here>")

    def test_your_prefix_is_placeholder(self):
        assert _is_placeholder("your-openrouter-key")

    def test_literal_PLACEHOLDER_is_placeholder(self):
        assert _is_placeholder("PLACEHOLDER")

    def test_real_key_not_placeholder(self):
        assert not _is_placeholder("sk-or-v1-abc123defgh456ijkl789mnop")


class TestSettingsLoading:
    def test_get_settings_returns_object(self):
        s = get_settings()
        assert s is not None
        assert hasattr(s, "openrouter")
        assert hasattr(s, "flow")
        assert hasattr(s, "app")

    def test_force_mock_defaults_false(self, monkeypatch):
        """FORCE_MOCK_MODE should default to False when env var is absent."""
        monkeypatch.delenv("FORCE_MOCK_MODE", raising=False)
        assert not get_settings().app.force_mock_mode

    def test_live_mode_false_with_placeholder_key(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "<placeholder>")
        monkeypatch.delenv("FORCE_MOCK_MODE", raising=False)
        assert not get_settings().live_mode

    def test_live_mode_true_with_real_key(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-v1-realkey1234567890")
        monkeypatch.setenv("FORCE_MOCK_MODE", "false")
        assert get_settings().live_mode

    def test_force_mock_overrides_real_key(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-v1-realkey1234567890")
        monkeypatch.setenv("FORCE_MOCK_MODE", "true")
        assert not get_settings().live_mode

    def test_openrouter_defaults(self, monkeypatch):
        for key in ("OPENROUTER_MODEL", "OPENROUTER_TEMPERATURE", "OPENROUTER_MAX_TOKENS",
                    "OPENROUTER_BASE_URL"):
            monkeypatch.delenv(key, raising=False)
        cfg = get_settings().openrouter
        assert cfg.model == "openai/gpt-4o-mini"
        assert cfg.temperature == 0.7
        assert cfg.max_tokens == 3500
        assert cfg.base_url == "https://openrouter.ai/api/v1"

    def test_flow_delays_read_from_env(self, monkeypatch):
        monkeypatch.setenv("FLOW_DOCUMENTS_DELAY", "2.5")
        assert get_settings().flow.documents_delay == 2.5

    def test_storage_paths_from_env(self, isolated_storage):
        storage = get_settings().storage
        assert storage.db_path == Path(isolated_storage / "companion.db")
        assert storage.pdf_dir == Path(isolated_storage / "pdfs")

    def test_functions_url_trailing_slash_stripped(self, monkeypatch):
        monkeypatch.setenv("GUIDE_FUNCTIONS_URL", "https://fn.example.com/functions/v1/")
        cfg = get_settings().functions
        assert cfg.url == "https://fn.example.com/functions/v1"
        assert cfg.is_configured

    def test_status_summary_keys(self):
        summary = get_settings().status_summary()
        assert any("OpenRouter" in k for k in summary)
        assert any("Functions" in k for k in summary)
        assert "Mock Mode" in summary
