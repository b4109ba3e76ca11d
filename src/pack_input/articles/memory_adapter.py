"""In-memory article catalog for development and testing.

Holds article records keyed by scan code. Records can be added explicitly or
generated from a scan code, which is how the simulator learns new articles
while an operator experiments with inputs.
"""

from dataclasses import replace

import structlog

from pack_input.articles.port import (
    ArticleRecord,
    ArticleResolver,
    ResolveOptions,
    apply_options,
    default_article,
)

logger = structlog.get_logger(__name__)


class InMemoryArticleCatalog(ArticleResolver):
    """Article resolver backed by a dictionary."""

    def __init__(self, records: dict[str, ArticleRecord] | None = None) -> None:
        self._records: dict[str, ArticleRecord] = dict(records or {})
        self.lookups: list[str] = []

    def __contains__(self, scan_code: str) -> bool:
        return scan_code in self._records

    def __len__(self) -> int:
        return len(self._records)

    def add(self, scan_code: str, record: ArticleRecord) -> None:
        self._records[scan_code] = record

    def remove(self, scan_code: str) -> None:
        self._records.pop(scan_code, None)

    def generate(self, scan_code: str, requires_fridge: bool = False) -> ArticleRecord:
        """Create and store a record for ``scan_code``."""
        record = replace(default_article(scan_code), requires_fridge=requires_fridge)
        self.add(scan_code, record)
        logger.info("Article generated", scan_code=scan_code, requires_fridge=requires_fridge)
        return record

    def find(self, scan_code: str, options: ResolveOptions | None = None) -> ArticleRecord | None:
        self.lookups.append(scan_code)
        record = self._records.get(scan_code)
        if record is None:
            return None
        return apply_options(record, options)

    def resolve(self, scan_code: str, options: ResolveOptions | None = None) -> ArticleRecord:
        record = self.find(scan_code, options)
        if record is not None:
            return record
        logger.debug("Unknown scan code, using default article", scan_code=scan_code)
        return apply_options(default_article(scan_code), options)
