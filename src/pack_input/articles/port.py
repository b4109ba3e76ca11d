"""Article resolver port (abstract interface).

Defines the lookup the decision pipeline uses to turn a scan code into
article master data. Adapters decide where the records come from; a miss is
answered by ``find`` with None and by ``resolve`` with a synthesized default.
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace

MAX_SUB_ITEM_QUANTITY_LIMIT = 999


@dataclass(frozen=True)
class ArticleRecord:
    """Article master data for one scan code."""

    id: str
    name: str
    dosage_form: str = ""
    packaging_unit: str = ""
    max_sub_item_quantity: int = 0
    requires_fridge: bool = False


@dataclass(frozen=True)
class ResolveOptions:
    """Operator options applied to every resolved article.

    ``max_sub_item_quantity`` None picks a random quantity in [1, 999).
    """

    max_sub_item_quantity: int | None = None
    article_name: str | None = None


def apply_options(record: ArticleRecord, options: ResolveOptions | None) -> ArticleRecord:
    """Return ``record`` with the operator's overrides applied."""
    options = options or ResolveOptions()
    quantity = options.max_sub_item_quantity
    if quantity is None:
        quantity = random.randrange(1, MAX_SUB_ITEM_QUANTITY_LIMIT)
    return replace(
        record,
        name=options.article_name or record.name,
        max_sub_item_quantity=quantity,
    )


def default_article(scan_code: str) -> ArticleRecord:
    """Synthesize the record used for scan codes nobody knows."""
    return ArticleRecord(
        id=scan_code,
        name=f"Article {scan_code}",
        dosage_form="PCK",
        packaging_unit="1 St",
    )


class ArticleResolver(ABC):
    """Abstract article lookup keyed by scan code."""

    @abstractmethod
    def find(self, scan_code: str, options: ResolveOptions | None = None) -> ArticleRecord | None:
        """Return the known article for ``scan_code`` or None."""
        ...

    @abstractmethod
    def resolve(self, scan_code: str, options: ResolveOptions | None = None) -> ArticleRecord:
        """Return the known article or a synthesized default. Never fails."""
        ...

    @abstractmethod
    def add(self, scan_code: str, record: ArticleRecord) -> None:
        """Register ``record`` for ``scan_code``, replacing any earlier one."""
        ...

    @abstractmethod
    def remove(self, scan_code: str) -> None:
        """Forget ``scan_code``. Unknown codes are ignored."""
        ...
