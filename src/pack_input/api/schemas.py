"""Pydantic request/response schemas for the pack input API.

These are external contracts, separate from internal Protean commands. The
protocol messages themselves are already pydantic models and are accepted and
returned as they are.
"""

from datetime import date

from pydantic import BaseModel, Field

from pack_input.protocol.messages import InputRequest
from pack_input.storage.port import PackShape


# ---------------------------------------------------------------------------
# Field catalog
# ---------------------------------------------------------------------------
class ResponseFieldSchema(BaseModel):
    name: str
    value_kind: str
    is_mandatory: bool
    choices: list[str] | None = None


class ResponseFieldsResponse(BaseModel):
    message_type: str
    fields: list[ResponseFieldSchema]


# ---------------------------------------------------------------------------
# Response profiles
# ---------------------------------------------------------------------------
class CreateResponseProfileRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class ResponseProfileIdResponse(BaseModel):
    profile_id: str


class SetFieldPolicyRequest(BaseModel):
    mode: str
    raw_value: str | None = None


class FieldPolicySchema(BaseModel):
    field_name: str
    mode: str
    raw_value: str | None = None


class ResponseProfileResponse(BaseModel):
    profile_id: str
    name: str
    message_types: dict[str, list[FieldPolicySchema]]


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------
class ArticleRequest(BaseModel):
    id: str
    name: str
    dosage_form: str = ""
    packaging_unit: str = ""
    max_sub_item_quantity: int = Field(ge=0, default=0)
    requires_fridge: bool = False


# ---------------------------------------------------------------------------
# Input processing
# ---------------------------------------------------------------------------
class ConfigurationSchema(BaseModel):
    allow_stock_return_input: bool = True
    allow_stock_delivery_input: bool = True
    enforce_picking_indicator: bool = False
    only_known_articles: bool = False
    enforce_expiry_date: bool = False
    enforce_batch_number: bool = False
    enforce_stock_location: bool = False
    enforce_serial_number: bool = False
    parse_scancodes: bool = False
    fridge_only: bool = False
    default_expiry_month_offset: int = Field(ge=0, default=6)
    overwrite_stock_location: str | None = None
    set_max_sub_item_quantity: bool = False
    max_sub_item_quantity: int | None = Field(default=None, ge=1, le=999)
    set_virtual_article: bool = False
    overwrite_article_name: str | None = None


class ProcessInputRequest(BaseModel):
    request: InputRequest
    configuration: ConfigurationSchema | None = None
    profile_id: str | None = None


class StatusResponse(BaseModel):
    status: str = "ok"



# ---------------------------------------------------------------------------
# Storage connection and outbound inputs
# ---------------------------------------------------------------------------
class OpenConnectionRequest(BaseModel):
    address: str = Field(default="localhost", min_length=1)
    port: int = Field(default=6050, ge=1, le=65535)


class ConnectionResponse(BaseModel):
    is_open: bool
    address: str | None = None
    port: int | None = None


class ResponderSettingsRequest(BaseModel):
    configuration: ConfigurationSchema | None = None
    profile_id: str | None = None


class InputPackSchema(BaseModel):
    scan_code: str = Field(min_length=1)
    batch_number: str | None = None
    external_id: str | None = None
    expiry_date: date | None = None
    sub_item_quantity: int = Field(default=0, ge=0)
    depth: int = Field(default=0, ge=0)
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    shape: PackShape = PackShape.CUBOID
    stock_location_id: str | None = None
    serial_number: str | None = None


class StartInitiatedInputRequest(BaseModel):
    id: str = Field(min_length=1)
    input_source: int
    input_point: int
    destination: int
    packs: list[InputPackSchema] = Field(default_factory=list)
    delivery_number: str | None = None
    picking_indicator: bool = False


class StartInfeedInputRequest(BaseModel):
    id: str = Field(min_length=1)
    infeed_number: int
    destination: int
    packs: list[InputPackSchema] = Field(default_factory=list)
    delivery_number: str | None = None
    picking_indicator: bool = False
    timeout: float | None = Field(default=None, gt=0)
    auto_increment_serial: bool = False


class ProcessedPackSchema(BaseModel):
    id: str
    scan_code: str
    stored: bool
    error_type: str | None = None
    error_text: str | None = None


class ProcessedArticleSchema(BaseModel):
    id: str
    name: str | None = None
    packs: list[ProcessedPackSchema]


class OutboundInputResponse(BaseModel):
    id: str
    state: str
    articles: list[ProcessedArticleSchema]
    serial_number: str | None = None
