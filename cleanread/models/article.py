"""Data models produced by the article pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set

from bs4 import BeautifulSoup, Tag


@dataclass
class Image:
    """Representative image chosen for an article."""

    src: str
    extraction_type: str = "na"
    width: int = 0
    height: int = 0
    bytes: int = 0
    confidence_score: float = 0.0


@dataclass
class Article:
    """Structured extraction result for one crawled page.

    ``doc`` is the working tree and is pruned as the pipeline runs.
    ``raw_doc`` is a copy taken before any cleaning and must not be mutated;
    image scoring relies on the original structure.
    """

    final_url: str = ""
    linkhash: str = ""
    raw_html: str = ""
    doc: Optional[BeautifulSoup] = None
    raw_doc: Optional[BeautifulSoup] = None
    title: str = ""
    publish_date: Optional[datetime] = None
    additional_data: Dict[str, str] = field(default_factory=dict)
    meta_description: str = ""
    meta_keywords: str = ""
    canonical_link: str = ""
    domain: str = ""
    tags: Set[str] = field(default_factory=set)
    top_node: Optional[Tag] = None
    top_image: Optional[Image] = None
    movies: List[str] = field(default_factory=list)
    cleaned_article_text: str = ""
