# tests/unit/config/test_settings.py — v1
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from markxiv.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_caches(self):
        s = Settings(_env_file=None)
        assert s.cache_cap == 128
        assert s.cache_dir == Path("cache")
        assert s.disk_cache_cap_bytes == 0
        assert s.disk_cache_enabled is False

    def test_default_timeouts(self):
        s = Settings(_env_file=None)
        assert s.request_timeout_secs == 15.0
        assert s.conversion_timeout_secs == 120.0

    def test_default_tools(self):
        s = Settings(_env_file=None)
        assert s.pandoc_bin == "pandoc"
        assert s.pandoc_output_format == "gfm"
        assert s.pdftotext_bin == "pdftotext"

    def test_urls_lose_trailing_slash(self):
        s = Settings(_env_file=None, arxiv_base_url="https://arxiv.org/")
        assert s.arxiv_base_url == "https://arxiv.org"


class TestSettingsEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("MARKXIV_CACHE_CAP", "7")
        monkeypatch.setenv("MARKXIV_DISK_CACHE_CAP_BYTES", "1048576")
        s = Settings(_env_file=None)
        assert s.cache_cap == 7
        assert s.disk_cache_enabled is True

    def test_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("MARKXIV_LOG_FORMAT=text\nMARKXIV_PANDOC_BIN=/opt/pandoc\n")
        s = Settings(_env_file=env)
        assert s.log_format == "text"
        assert s.pandoc_bin == "/opt/pandoc"


class TestSettingsValidation:
    def test_cache_cap_must_be_positive(self):
        with pytest.raises(ConfigurationError, match="CACHE_CAP"):
            Settings(_env_file=None, cache_cap=0)

    def test_negative_disk_cap(self):
        with pytest.raises(ConfigurationError, match="DISK_CACHE_CAP_BYTES"):
            Settings(_env_file=None, disk_cache_cap_bytes=-1)

    def test_sweep_interval_when_enabled(self):
        with pytest.raises(ConfigurationError, match="SWEEP_INTERVAL"):
            Settings(_env_file=None, disk_cache_cap_bytes=100, sweep_interval_secs=0)

    def test_sweep_interval_ignored_when_disabled(self):
        assert Settings(_env_file=None, sweep_interval_secs=0).disk_cache_enabled is False

    def test_timeouts(self):
        with pytest.raises(ConfigurationError, match="REQUEST_TIMEOUT"):
            Settings(_env_file=None, request_timeout_secs=0)
        with pytest.raises(ConfigurationError, match="CONVERSION_TIMEOUT"):
            Settings(_env_file=None, conversion_timeout_secs=-5)

    def test_errors_are_collected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(_env_file=None, cache_cap=0, request_timeout_secs=0)
        assert "CACHE_CAP" in str(exc_info.value)
        assert "REQUEST_TIMEOUT" in str(exc_info.value)


class TestLoadSettings:
    def test_overrides(self):
        s = load_settings(_env_file=None, cache_cap=3)
        assert s.cache_cap == 3
