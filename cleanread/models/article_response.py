from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from cleanread.models.article import Article


class ImageModel(BaseModel):
    src: str
    extraction_type: str
    width: int
    height: int
    bytes: int
    confidence_score: float


class ArticleResponse(BaseModel):
    url: str
    linkhash: str
    title: str
    publish_date: Optional[datetime] = None
    meta_description: str
    meta_keywords: str
    canonical_link: str
    domain: str
    tags: List[str]
    additional_data: Dict[str, str]
    top_image: Optional[ImageModel] = None
    movies: List[str]
    cleaned_article_text: str
    word_count: int

    @classmethod
    def from_article(cls, article: Article) -> "ArticleResponse":
        top_image = None
        if article.top_image is not None:
            img = article.top_image
            top_image = ImageModel(
                src=img.src,
                extraction_type=img.extraction_type,
                width=img.width,
                height=img.height,
                bytes=img.bytes,
                confidence_score=img.confidence_score,
            )
        return cls(
            url=article.final_url,
            linkhash=article.linkhash,
            title=article.title,
            publish_date=article.publish_date,
            meta_description=article.meta_description,
            meta_keywords=article.meta_keywords,
            canonical_link=article.canonical_link,
            domain=article.domain,
            tags=sorted(article.tags),
            additional_data=article.additional_data,
            top_image=top_image,
            movies=article.movies,
            cleaned_article_text=article.cleaned_article_text,
            word_count=len(article.cleaned_article_text.split()),
        )


class NotFoundResponse(BaseModel):
    detail: str
    reason: str
    url: str
