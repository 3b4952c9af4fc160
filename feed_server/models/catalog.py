"""Source catalog and article content models."""

from typing import List, Optional

from pydantic import BaseModel

from .common import TopicInfo


class CatalogSource(BaseModel):
    id: str
    title: str
    site_url: Optional[str] = None
    topics: List[TopicInfo] = []
    article_count: int = 0
    # None on the public catalog
    subscribed: Optional[bool] = None


class SourceCatalogResponse(BaseModel):
    sources: List[CatalogSource]
    topics: List[TopicInfo]


class ArticleContentResponse(BaseModel):
    content: Optional[str] = None
    has_more: bool = False
