"""Tests for the in-memory article catalog and the resolver factory."""

import pytest

from pack_input.articles import (
    ArticleRecord,
    ArticleResolver,
    InMemoryArticleCatalog,
    ResolveOptions,
    get_resolver,
    reset_resolver,
    set_resolver,
)


def _catalog():
    catalog = InMemoryArticleCatalog()
    catalog.add("4711", ArticleRecord(id="4711", name="Aspirin", max_sub_item_quantity=20))
    return catalog


class TestFind:
    def test_known_article(self):
        record = _catalog().find("4711", ResolveOptions(max_sub_item_quantity=20))
        assert record.name == "Aspirin"

    def test_unknown_article(self):
        assert _catalog().find("0000") is None

    def test_name_override(self):
        record = _catalog().find("4711", ResolveOptions(max_sub_item_quantity=5, article_name="Renamed"))
        assert record.name == "Renamed"
        assert record.max_sub_item_quantity == 5

    def test_random_max_sub_item_quantity(self):
        record = _catalog().find("4711", ResolveOptions())
        assert 1 <= record.max_sub_item_quantity < 999


class TestResolve:
    def test_unknown_scan_code_gets_default_article(self):
        record = _catalog().resolve("0000", ResolveOptions(max_sub_item_quantity=1))
        assert record.id == "0000"
        assert record.name == "Article 0000"
        assert record.requires_fridge is False

    def test_known_scan_code(self):
        assert _catalog().resolve("4711", ResolveOptions(max_sub_item_quantity=1)).name == "Aspirin"


class TestMaintenance:
    def test_generate_stores_a_record(self):
        catalog = InMemoryArticleCatalog()
        record = catalog.generate("1234", requires_fridge=True)

        assert "1234" in catalog
        assert record.requires_fridge is True

    def test_remove(self):
        catalog = _catalog()
        catalog.remove("4711")
        catalog.remove("4711")
        assert len(catalog) == 0


class TestResolverFactory:
    def test_default_is_in_memory(self):
        reset_resolver()
        assert isinstance(get_resolver(), InMemoryArticleCatalog)

    def test_set_and_reset(self):
        custom = _catalog()
        set_resolver(custom)
        assert get_resolver() is custom
        reset_resolver()
        assert get_resolver() is not custom

    def test_resolver_must_support_maintenance(self):
        class LookupOnly(ArticleResolver):
            def find(self, scan_code, options=None):
                return None

            def resolve(self, scan_code, options=None):
                return ArticleRecord(id=scan_code, name=scan_code)

        with pytest.raises(TypeError):
            LookupOnly()
