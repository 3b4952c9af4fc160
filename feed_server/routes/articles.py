"""Article endpoints: full content for the reader view."""

from fastapi import APIRouter, HTTPException

from ..models import ArticleContentResponse
from ..services import UnknownArticleError
from ..state import get_state

router = APIRouter()


@router.get("/{article_id}/content", response_model=ArticleContentResponse)
def get_article_content(article_id: str):
    try:
        content, has_more = get_state().catalog.article_content(article_id)
    except UnknownArticleError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ArticleContentResponse(content=content, has_more=has_more)
