"""Wire-level input messages exchanged with the storage system.

These are the objects the transport hands over when a storage system asks
for permission to input packs, and the objects it serializes back. The
decision pipeline mutates them in place; the response projector overrides
their fields according to the operator's policies.
"""

from collections.abc import Callable
from datetime import date
from enum import Enum
from typing import ClassVar

from protean.exceptions import InvalidOperationError
from pydantic import BaseModel, Field, PrivateAttr, field_validator

from pack_input.exceptions import ArticleAssignmentError
from pack_input.protocol.schema import FieldDescriptor, ValueKind


class InputHandlingKind(Enum):
    ALLOWED = "Allowed"
    ALLOWED_FOR_FRIDGE = "AllowedForFridge"
    REJECTED = "Rejected"
    REJECTED_NO_PICKING_INDICATOR = "RejectedNoPickingIndicator"
    REJECTED_NO_EXPIRY_DATE = "RejectedNoExpiryDate"
    REJECTED_NO_BATCH_NUMBER = "RejectedNoBatchNumber"
    REJECTED_NO_STOCK_LOCATION = "RejectedNoStockLocation"
    REJECTED_NO_SERIAL_NUMBER = "RejectedNoSerialNumber"


class ExpiryDateSource(Enum):
    INDIVIDUAL = "Individual"
    DELIVERY = "Delivery"
    ARTICLE = "Article"


class Article(BaseModel):
    """Article information attached to a pack in the response."""

    SCHEMA: ClassVar[tuple[FieldDescriptor, ...]] = (
        FieldDescriptor("id", ValueKind.TEXT, is_mandatory=True),
        FieldDescriptor("name", ValueKind.TEXT),
        FieldDescriptor("dosage_form", ValueKind.TEXT),
        FieldDescriptor("packaging_unit", ValueKind.TEXT),
        FieldDescriptor("max_sub_item_quantity", ValueKind.NUMERIC),
        FieldDescriptor("requires_fridge", ValueKind.BOOLEAN),
        FieldDescriptor("virtual_article_id", ValueKind.TEXT),
        FieldDescriptor("virtual_article_name", ValueKind.TEXT),
    )
    CHILDREN: ClassVar[tuple[str, ...]] = ()

    id: str | None = None
    name: str | None = None
    dosage_form: str | None = None
    packaging_unit: str | None = None
    max_sub_item_quantity: int = 0
    requires_fridge: bool = False
    virtual_article_id: str | None = None
    virtual_article_name: str | None = None


class Handling(BaseModel):
    """The verdict for one pack."""

    SCHEMA: ClassVar[tuple[FieldDescriptor, ...]] = (
        FieldDescriptor("kind", ValueKind.ENUMERATED, is_mandatory=True, choices=InputHandlingKind),
        FieldDescriptor("message", ValueKind.TEXT),
    )
    CHILDREN: ClassVar[tuple[str, ...]] = ()

    kind: InputHandlingKind | None = None
    message: str | None = None


class Pack(BaseModel):
    """A single physical pack the storage system wants to input."""

    SCHEMA: ClassVar[tuple[FieldDescriptor, ...]] = (
        FieldDescriptor("index", ValueKind.NUMERIC, is_mandatory=True),
        FieldDescriptor("scan_code", ValueKind.TEXT, is_mandatory=True),
        FieldDescriptor("batch_number", ValueKind.TEXT),
        FieldDescriptor("external_id", ValueKind.TEXT),
        FieldDescriptor("expiry_date", ValueKind.DATE),
        FieldDescriptor("expiry_date_source", ValueKind.ENUMERATED, choices=ExpiryDateSource),
        FieldDescriptor("sub_item_quantity", ValueKind.NUMERIC),
        FieldDescriptor("stock_location_id", ValueKind.TEXT),
        FieldDescriptor("serial_number", ValueKind.TEXT),
    )
    CHILDREN: ClassVar[tuple[str, ...]] = ("article", "handling")

    index: int = 0
    scan_code: str
    batch_number: str | None = None
    external_id: str | None = None
    expiry_date: date | None = None
    expiry_date_source: ExpiryDateSource | None = None
    sub_item_quantity: int = 0
    stock_location_id: str | None = None
    serial_number: str | None = None
    article: Article | None = None
    handling: Handling | None = None

    def set_article_information(
        self,
        article_id,
        name,
        dosage_form,
        packaging_unit,
        max_sub_item_quantity=0,
        virtual_article_id=None,
        virtual_article_name=None,
        requires_fridge=False,
    ):
        """Attach article information to the pack."""
        if not article_id or not str(article_id).strip():
            raise ArticleAssignmentError(f"Pack '{self.scan_code}' has no article id.")
        if max_sub_item_quantity is not None and max_sub_item_quantity < 0:
            raise ArticleAssignmentError(
                f"Max sub item quantity of article '{article_id}' must not be negative: {max_sub_item_quantity}"
            )

        self.article = Article(
            id=article_id,
            name=name,
            dosage_form=dosage_form,
            packaging_unit=packaging_unit,
            max_sub_item_quantity=max_sub_item_quantity or 0,
            requires_fridge=requires_fridge,
            virtual_article_id=virtual_article_id,
            virtual_article_name=virtual_article_name,
        )

    def set_handling(self, kind: InputHandlingKind, message: str | None = None):
        """Assign the verdict. A pack is decided at most once per request."""
        if self.handling is not None and self.handling.kind is not None:
            raise InvalidOperationError(
                f"Pack '{self.scan_code}' already has handling {self.handling.kind.value}"
            )
        self.handling = Handling(kind=kind, message=message or None)


class InputRequest(BaseModel):
    """A request to input packs, either a stock return or a delivery."""

    SCHEMA: ClassVar[tuple[FieldDescriptor, ...]] = (
        FieldDescriptor("id", ValueKind.TEXT, is_mandatory=True),
        FieldDescriptor("source", ValueKind.NUMERIC, is_mandatory=True),
        FieldDescriptor("destination", ValueKind.NUMERIC, is_mandatory=True),
        FieldDescriptor("delivery_number", ValueKind.TEXT),
        FieldDescriptor("picking_indicator", ValueKind.BOOLEAN),
    )
    CHILDREN: ClassVar[tuple[str, ...]] = ("packs",)

    id: str
    source: int = 0
    destination: int = 0
    delivery_number: str | None = None
    picking_indicator: bool = False
    packs: list[Pack] = Field(default_factory=list)

    _on_finish: Callable | None = PrivateAttr(default=None)
    _finished: bool = PrivateAttr(default=False)

    @field_validator("packs")
    @classmethod
    def packs_must_be_undecided(cls, packs: list[Pack]) -> list[Pack]:
        """Inbound packs carry no verdict; the pipeline assigns it."""
        for pack in packs:
            if pack.handling is not None:
                raise ValueError(f"Pack '{pack.scan_code}' already carries a handling")
        return packs

    @property
    def is_delivery(self) -> bool:
        return bool(self.delivery_number)

    @property
    def is_finished(self) -> bool:
        return self._finished

    def on_finish(self, callback: Callable) -> None:
        """Register the transport's completion callback."""
        self._on_finish = callback

    def finish(self, response=None) -> None:
        """Signal the transport that the decision cycle is complete."""
        if self._finished:
            return
        self._finished = True
        if self._on_finish is not None:
            self._on_finish(self, response)


class InputResponse(BaseModel):
    """The response sent back for an input request."""

    SCHEMA: ClassVar[tuple[FieldDescriptor, ...]] = (
        FieldDescriptor("id", ValueKind.TEXT, is_mandatory=True),
        FieldDescriptor("source", ValueKind.NUMERIC, is_mandatory=True),
        FieldDescriptor("destination", ValueKind.NUMERIC, is_mandatory=True),
        FieldDescriptor("delivery_number", ValueKind.TEXT),
        FieldDescriptor("is_new_delivery", ValueKind.BOOLEAN),
    )
    CHILDREN: ClassVar[tuple[str, ...]] = ("packs",)

    id: str
    source: int = 0
    destination: int = 0
    delivery_number: str | None = None
    is_new_delivery: bool = False
    packs: list[Pack] = Field(default_factory=list)

    @classmethod
    def from_request(cls, request: InputRequest) -> "InputResponse":
        return cls(
            id=request.id,
            source=request.source,
            destination=request.destination,
            delivery_number=request.delivery_number,
            is_new_delivery=request.is_delivery,
            packs=request.packs,
        )
