"""Tests for cleanread.config."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cleanread.config import Configuration, Settings, make_output_formatter
from cleanread.services.browser_fetcher import BrowserFetcher
from cleanread.services.fetcher import HttpFetcher
from cleanread.services.formatter import MarkdownOutputFormatter, TextOutputFormatter
from cleanread.services.images import StandardImageExtractor


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CLEANREAD_WORKERS", raising=False)
        settings = Settings(_env_file=None)
        assert settings.enable_image_fetching is True
        assert settings.output_format == "text"
        assert settings.workers == 4
        assert settings.strict_metadata is True

    def test_reads_prefixed_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CLEANREAD_WORKERS", "8")
        monkeypatch.setenv("CLEANREAD_OUTPUT_FORMAT", "markdown")
        monkeypatch.setenv("CLEANREAD_LOCAL_STORAGE_PATH", str(tmp_path))
        settings = Settings(_env_file=None)
        assert settings.workers == 8
        assert settings.output_format == "markdown"
        assert settings.local_storage_path == tmp_path

    def test_rejects_zero_workers(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, workers=0)


class TestConfiguration:
    def test_defaults(self, tmp_path):
        config = Configuration(local_storage_path=str(tmp_path))
        assert config.local_storage_path == Path(tmp_path)
        assert isinstance(config.fetcher, HttpFetcher)
        assert isinstance(config.output_formatter, TextOutputFormatter)
        assert isinstance(config.image_extractor, StandardImageExtractor)
        assert config.strict_metadata is True

    def test_from_settings(self, tmp_path):
        settings = Settings(
            _env_file=None,
            local_storage_path=tmp_path,
            output_format="markdown",
            enable_image_fetching=False,
            strict_metadata=False,
            fetch_timeout=3,
        )
        config = Configuration.from_settings(settings)
        assert config.enable_image_fetching is False
        assert config.strict_metadata is False
        assert isinstance(config.output_formatter, MarkdownOutputFormatter)
        assert isinstance(config.fetcher, HttpFetcher)
        assert config.fetcher.timeout == 3
        assert config.image_extractor.timeout == 3

    def test_browser_rendering_selects_browser_fetcher(self, tmp_path):
        settings = Settings(_env_file=None, local_storage_path=tmp_path, browser_rendering=True)
        assert isinstance(Configuration.from_settings(settings).fetcher, BrowserFetcher)

    def test_make_output_formatter(self):
        assert isinstance(make_output_formatter("markdown"), MarkdownOutputFormatter)
        assert isinstance(make_output_formatter("text"), TextOutputFormatter)
