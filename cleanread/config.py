"""Configuration management."""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cleanread.services.browser_fetcher import BrowserFetcher
from cleanread.services.extractor import StandardContentExtractor
from cleanread.services.fetcher import TIMEOUT, HttpFetcher
from cleanread.services.formatter import MarkdownOutputFormatter, TextOutputFormatter
from cleanread.services.images import StandardImageExtractor
from cleanread.services.metadata import NoAdditionalDataExtractor, StandardPublishDateExtractor
from cleanread.services.parser import LxmlParser
from cleanread.services.protocols import (
    AdditionalDataExtractor,
    ContentExtractor,
    DocumentCleaner,
    Fetcher,
    ImageExtractor,
    OutputFormatter,
    Parser,
    PublishDateExtractor,
)
from cleanread.services.sanitizer import StandardDocumentCleaner

DEFAULT_STORAGE_PATH = Path(tempfile.gettempdir()) / "cleanread"

OutputFormat = Literal["text", "markdown"]


class Settings(BaseSettings):
    """Application settings, read from ``CLEANREAD_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="CLEANREAD_", env_file=".env", extra="ignore")

    enable_image_fetching: bool = True
    local_storage_path: Path = DEFAULT_STORAGE_PATH
    output_format: OutputFormat = "text"
    browser_rendering: bool = False
    strict_metadata: bool = True
    fetch_timeout: float = Field(default=TIMEOUT, gt=0)

    # Worker pool
    workers: int = Field(default=4, ge=1, le=64)
    max_queue_size: int = Field(default=100, ge=1)

    log_level: str = "INFO"


def make_output_formatter(output_format: OutputFormat) -> OutputFormatter:
    if output_format == "markdown":
        return MarkdownOutputFormatter()
    return TextOutputFormatter()


@dataclass
class Configuration:
    """Everything one pipeline run needs: switches plus one instance per stage.

    Every collaborator defaults to its standard implementation; pass another
    object satisfying the matching protocol to swap a stage out.
    """

    enable_image_fetching: bool = True
    local_storage_path: Path = DEFAULT_STORAGE_PATH
    strict_metadata: bool = True

    fetcher: Fetcher = field(default_factory=HttpFetcher)
    parser: Parser = field(default_factory=LxmlParser)
    content_extractor: ContentExtractor = field(default_factory=StandardContentExtractor)
    document_cleaner: DocumentCleaner = field(default_factory=StandardDocumentCleaner)
    output_formatter: OutputFormatter = field(default_factory=TextOutputFormatter)
    publish_date_extractor: PublishDateExtractor = field(
        default_factory=StandardPublishDateExtractor
    )
    additional_data_extractor: AdditionalDataExtractor = field(
        default_factory=NoAdditionalDataExtractor
    )
    image_extractor: Optional[ImageExtractor] = None

    def __post_init__(self) -> None:
        self.local_storage_path = Path(self.local_storage_path)
        if self.image_extractor is None:
            self.image_extractor = StandardImageExtractor()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Configuration":
        fetcher: Fetcher
        if settings.browser_rendering:
            fetcher = BrowserFetcher()
        else:
            fetcher = HttpFetcher(timeout=settings.fetch_timeout)
        return cls(
            enable_image_fetching=settings.enable_image_fetching,
            local_storage_path=settings.local_storage_path,
            strict_metadata=settings.strict_metadata,
            fetcher=fetcher,
            output_formatter=make_output_formatter(settings.output_format),
            image_extractor=StandardImageExtractor(timeout=settings.fetch_timeout),
        )


def get_settings() -> Settings:
    return Settings()
