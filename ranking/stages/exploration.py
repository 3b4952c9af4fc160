"""
Exploration: interleave vetted, out-of-profile articles into the reranked list.

One exploration item follows every explore_interval reranked items. Items are drawn
from recent articles of preinstalled sources that neither appear in the reranked
list nor are hidden by the user, so the feed keeps offering something new.
"""

import random
from typing import Iterable, List, Mapping, Optional, Set

from ..models.article import Article, Source
from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.interest import UserSignals
from ..models.scoring import CandidateSource, ScoreBreakdown, ScoredArticle


def select_exploration_pool(
    recent_articles: Iterable[Article],
    sources: Mapping[str, Source],
    signals: UserSignals,
    selected_source_ids: Optional[Set[str]] = None,
    config: RankingConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> List[Article]:
    """
    Shuffled exploration pool of up to explore_pool_size articles.

    recent_articles should be newest first. Eligible articles come from a preinstalled
    source that is neither in selected_source_ids nor hidden, and are not hidden themselves.
    """
    rng = rng or random.Random()
    selected_source_ids = selected_source_ids or set()
    pool: List[Article] = []
    for article in recent_articles:
        source = sources.get(article.source_id)
        if source is None or not source.is_preinstalled:
            continue
        if article.source_id in selected_source_ids:
            continue
        if article.source_id in signals.hidden_source_ids:
            continue
        if article.id in signals.hidden_article_ids:
            continue
        pool.append(article)
        if len(pool) >= config.explore_pool_size:
            break
    rng.shuffle(pool)
    return pool


def _as_explore_item(article: Article, source: Source, config: RankingConfig) -> ScoredArticle:
    return ScoredArticle(
        article=article,
        source=source,
        score=config.explore_score,
        breakdown=ScoreBreakdown(),
        candidate_sources=[CandidateSource.EXPLORE],
    )


def inject_exploration(
    reranked: List[ScoredArticle],
    explore_articles: List[Article],
    sources: Mapping[str, Source],
    config: RankingConfig = DEFAULT_CONFIG,
) -> List[ScoredArticle]:
    """
    Insert one EXPLORE item after every explore_interval reranked items.

    explore_articles is consumed in order (already shuffled). Articles already in the
    reranked list are skipped. An empty pool returns the list unchanged.
    """
    if not explore_articles:
        return list(reranked)

    present = {item.article.id for item in reranked}
    queue = [
        a for a in explore_articles
        if a.id not in present and a.source_id in sources
    ]
    interval = config.explore_interval
    result: List[ScoredArticle] = []
    for i, item in enumerate(reranked, start=1):
        result.append(item)
        if i % interval == 0 and queue:
            article = queue.pop(0)
            result.append(_as_explore_item(article, sources[article.source_id], config))
    return result
