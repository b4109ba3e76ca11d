from datetime import date

import pytest
from protean.integrations.pytest import DomainFixture

from pack_input.articles import InMemoryArticleCatalog, reset_resolver, set_resolver
from pack_input.articles.port import ArticleRecord

TODAY = date(2026, 1, 15)


@pytest.fixture(scope="session")
def pack_input_bed():
    from pack_input.domain import pack_input

    bed = DomainFixture(pack_input)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(pack_input_bed):
    with pack_input_bed.domain_context():
        yield


@pytest.fixture()
def articles():
    """Article catalog with one ordinary and one refrigerated article."""
    catalog = InMemoryArticleCatalog()
    catalog.add(
        "4711",
        ArticleRecord(
            id="4711",
            name="Aspirin 500mg",
            dosage_form="TAB",
            packaging_unit="20 St",
            max_sub_item_quantity=20,
        ),
    )
    catalog.add(
        "0815",
        ArticleRecord(
            id="0815",
            name="Insulin Pen",
            dosage_form="INJ",
            packaging_unit="5 St",
            max_sub_item_quantity=5,
            requires_fridge=True,
        ),
    )
    set_resolver(catalog)
    yield catalog
    reset_resolver()


@pytest.fixture()
def today():
    return lambda: TODAY
