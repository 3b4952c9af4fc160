"""Domain errors raised by services and translated to HTTP status codes by routes."""


class FeedError(Exception):
    """Base class for feed service errors."""


class FeedUnavailableError(FeedError):
    """A primary data source (interest store or content index) could not be read."""


class UnknownArticleError(FeedError, LookupError):
    def __init__(self, article_id: str):
        super().__init__(f"Article not found: {article_id}")
        self.article_id = article_id


class UnknownSourceError(FeedError, LookupError):
    def __init__(self, source_id: str):
        super().__init__(f"Source not found: {source_id}")
        self.source_id = source_id


class InvalidOnboardingError(FeedError, ValueError):
    """Too few or unknown topic slugs."""


class UnknownTopicError(FeedError, LookupError):
    def __init__(self, slug: str):
        super().__init__(f"Topic not found: {slug}")
        self.slug = slug
