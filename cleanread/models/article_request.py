from typing import Literal, Optional

from pydantic import BaseModel, Field


class ArticleRequest(BaseModel):
    url: str = Field(min_length=1, max_length=8192, description="Page URL; normalised before use.")
    raw_html: Optional[str] = Field(
        default=None,
        description="Pre-fetched HTML. When present the URL is not fetched.",
    )
    enable_image_fetching: Optional[bool] = None
    """Override the server default for top-image extraction."""

    output_format: Optional[Literal["text", "markdown"]] = None
    """Override the server default for how ``cleaned_article_text`` is rendered."""
