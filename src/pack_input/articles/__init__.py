"""Article resolver factory.

Provides get_resolver() / set_resolver() to swap the article source. The
in-memory catalog is the default.
"""

from pack_input.articles.memory_adapter import InMemoryArticleCatalog
from pack_input.articles.port import ArticleRecord, ArticleResolver, ResolveOptions

_current_resolver: ArticleResolver | None = None


def get_resolver() -> ArticleResolver:
    """Return the current article resolver. Defaults to InMemoryArticleCatalog."""
    global _current_resolver
    if _current_resolver is None:
        _current_resolver = InMemoryArticleCatalog()
    return _current_resolver


def set_resolver(resolver: ArticleResolver) -> None:
    """Override the active article resolver (useful for tests)."""
    global _current_resolver
    _current_resolver = resolver


def reset_resolver() -> None:
    """Reset to the default resolver."""
    global _current_resolver
    _current_resolver = None


__all__ = [
    "ArticleRecord",
    "ArticleResolver",
    "InMemoryArticleCatalog",
    "ResolveOptions",
    "get_resolver",
    "reset_resolver",
    "set_resolver",
]
