"""Pydantic request/response models for the API."""

from .catalog import ArticleContentResponse, CatalogSource, SourceCatalogResponse
from .common import ArticleCard, SourceInfo, TopicInfo
from .feed import (
    FeedResponse,
    ImpressionItem,
    ImpressionsRequest,
    ImpressionsResponse,
    PublicFeedResponse,
)
from .interactions import InteractionRequest, InteractionResponse
from .users import OnboardingRequest, OnboardingResponse, SourceActionResponse

__all__ = [
    "ArticleCard",
    "ArticleContentResponse",
    "CatalogSource",
    "SourceCatalogResponse",
    "SourceInfo",
    "TopicInfo",
    "FeedResponse",
    "PublicFeedResponse",
    "ImpressionItem",
    "ImpressionsRequest",
    "ImpressionsResponse",
    "InteractionRequest",
    "InteractionResponse",
    "OnboardingRequest",
    "OnboardingResponse",
    "SourceActionResponse",
]
