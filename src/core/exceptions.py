class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class InvalidArticleUrlError(DomainError):
    """Exception raised when an article URL is malformed or not fetchable."""

    pass


class UpstreamServiceError(DomainError):
    """Exception raised when a collaborator (scraper, LLM) cannot serve a request."""

    pass
