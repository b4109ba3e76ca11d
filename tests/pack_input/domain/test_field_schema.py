"""Tests for the static field schema and schema-driven snapshots."""

from datetime import date

from pack_input.protocol.messages import (
    Article,
    ExpiryDateSource,
    Handling,
    InputHandlingKind,
    InputRequest,
    Pack,
)
from pack_input.protocol.schema import FieldDescriptor, ValueKind, field_names, snapshot


def _pack(**overrides):
    defaults = {
        "index": 1,
        "scan_code": "4711",
        "batch_number": "LOT-1",
        "expiry_date": date(2027, 5, 31),
        "expiry_date_source": ExpiryDateSource.INDIVIDUAL,
        "sub_item_quantity": 3,
        "article": Article(id="4711", name="Aspirin"),
    }
    defaults.update(overrides)
    return Pack(**defaults)


class TestZeroValues:
    def test_numeric_resets_to_zero(self):
        assert FieldDescriptor("count", ValueKind.NUMERIC).zero() == 0

    def test_boolean_resets_to_false(self):
        assert FieldDescriptor("flag", ValueKind.BOOLEAN).zero() is False

    def test_text_date_and_enum_reset_to_none(self):
        for kind in (ValueKind.TEXT, ValueKind.DATE, ValueKind.ENUMERATED):
            assert FieldDescriptor("value", kind).zero() is None


class TestFieldNames:
    def test_lists_scalar_fields_only(self):
        names = field_names(Pack)
        assert "batch_number" in names
        assert "article" not in names
        assert "handling" not in names

    def test_request_has_no_is_new_delivery(self):
        assert "is_new_delivery" not in field_names(InputRequest)

    def test_none_type_has_no_fields(self):
        assert field_names(type(None)) == frozenset()


class TestSnapshot:
    def test_snapshot_equals_original(self):
        pack = _pack()
        assert snapshot(pack) == pack

    def test_snapshot_is_a_new_object(self):
        pack = _pack()
        copy = snapshot(pack)
        assert copy is not pack
        assert copy.article is not pack.article

    def test_mutating_original_leaves_snapshot_untouched(self):
        pack = _pack()
        copy = snapshot(pack)

        pack.batch_number = "CHANGED"
        pack.article.name = "Changed"
        pack.set_handling(InputHandlingKind.ALLOWED)

        assert copy.batch_number == "LOT-1"
        assert copy.article.name == "Aspirin"
        assert copy.handling is None

    def test_snapshot_of_request_copies_packs(self):
        request = InputRequest(id="1", packs=[_pack(), _pack(index=2, scan_code="0815")])
        copy = snapshot(request)

        assert [p.scan_code for p in copy.packs] == ["4711", "0815"]
        assert copy.packs[0] is not request.packs[0]

    def test_snapshot_keeps_handling(self):
        pack = _pack(handling=Handling(kind=InputHandlingKind.REJECTED, message="no"))
        assert snapshot(pack).handling == Handling(kind=InputHandlingKind.REJECTED, message="no")

    def test_snapshot_of_none_is_none(self):
        assert snapshot(None) is None
