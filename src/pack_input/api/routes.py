"""FastAPI routes for response profiles, articles, input decisions and the storage connection."""

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, InvalidStateError
from protean.integrations.fastapi import register_exception_handlers
from protean.utils.globals import current_domain

from pack_input.api.schemas import (
    ArticleRequest,
    ConfigurationSchema,
    ConnectionResponse,
    CreateResponseProfileRequest,
    FieldPolicySchema,
    InputPackSchema,
    OpenConnectionRequest,
    OutboundInputResponse,
    ProcessedArticleSchema,
    ProcessedPackSchema,
    ProcessInputRequest,
    ResponderSettingsRequest,
    ResponseFieldSchema,
    ResponseFieldsResponse,
    ResponseProfileIdResponse,
    ResponseProfileResponse,
    SetFieldPolicyRequest,
    StartInfeedInputRequest,
    StartInitiatedInputRequest,
    StatusResponse,
)
from pack_input.articles import ArticleRecord, get_resolver
from pack_input.decision.configuration import InputConfiguration, load_configuration
from pack_input.decision.pipeline import InputDecisionPipeline
from pack_input.exceptions import InfeedTimeoutError, PackInputError
from pack_input.operations import get_operations
from pack_input.protocol.messages import InputRequest, InputResponse
from pack_input.response.catalog import catalog
from pack_input.response.policies import (
    CreateResponseProfile,
    DeselectResponseField,
    DisableResponseOverrides,
    EnableResponseOverrides,
    SetFieldPolicy,
)
from pack_input.response.profile import ResponseProfile
from pack_input.storage.port import InputPackSpec

# ---------------------------------------------------------------------------
# Response field router
# ---------------------------------------------------------------------------
response_field_router = APIRouter(prefix="/response-fields", tags=["response-fields"])


@response_field_router.get("/{message_type}", response_model=ResponseFieldsResponse)
async def list_response_fields(message_type: str) -> ResponseFieldsResponse:
    type_name = catalog.type_name(message_type)
    return ResponseFieldsResponse(
        message_type=type_name,
        fields=[
            ResponseFieldSchema(
                name=descriptor.name,
                value_kind=descriptor.value_kind.value,
                is_mandatory=descriptor.is_mandatory,
                choices=[member.value for member in descriptor.choices] if descriptor.choices else None,
            )
            for descriptor in catalog.discover(type_name)
        ],
    )


# ---------------------------------------------------------------------------
# Response profile router
# ---------------------------------------------------------------------------
response_profile_router = APIRouter(prefix="/response-profiles", tags=["response-profiles"])


@response_profile_router.post("", status_code=201, response_model=ResponseProfileIdResponse)
async def create_response_profile(body: CreateResponseProfileRequest) -> ResponseProfileIdResponse:
    result = current_domain.process(CreateResponseProfile(name=body.name), asynchronous=False)
    return ResponseProfileIdResponse(profile_id=result)


@response_profile_router.get("/{profile_id}", response_model=ResponseProfileResponse)
async def get_response_profile(profile_id: str) -> ResponseProfileResponse:
    profile = current_domain.repository_for(ResponseProfile).get(profile_id)
    message_types: dict[str, list[FieldPolicySchema]] = {}
    for policy in profile.policies:
        message_types.setdefault(policy.message_type, []).append(
            FieldPolicySchema(field_name=policy.field_name, mode=policy.mode, raw_value=policy.raw_value)
        )
    for policies in message_types.values():
        policies.sort(key=lambda policy: policy.field_name)
    return ResponseProfileResponse(profile_id=str(profile.id), name=profile.name, message_types=message_types)


@response_profile_router.put("/{profile_id}/types/{message_type}", response_model=StatusResponse)
async def enable_response_overrides(profile_id: str, message_type: str) -> StatusResponse:
    command = EnableResponseOverrides(profile_id=profile_id, message_type=message_type)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@response_profile_router.delete("/{profile_id}/types/{message_type}", response_model=StatusResponse)
async def disable_response_overrides(profile_id: str, message_type: str) -> StatusResponse:
    command = DisableResponseOverrides(profile_id=profile_id, message_type=message_type)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@response_profile_router.put(
    "/{profile_id}/types/{message_type}/fields/{field_name}",
    response_model=StatusResponse,
)
async def set_field_policy(
    profile_id: str, message_type: str, field_name: str, body: SetFieldPolicyRequest
) -> StatusResponse:
    command = SetFieldPolicy(
        profile_id=profile_id,
        message_type=message_type,
        field_name=field_name,
        mode=body.mode,
        raw_value=body.raw_value,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@response_profile_router.delete(
    "/{profile_id}/types/{message_type}/fields/{field_name}",
    response_model=StatusResponse,
)
async def deselect_response_field(profile_id: str, message_type: str, field_name: str) -> StatusResponse:
    command = DeselectResponseField(profile_id=profile_id, message_type=message_type, field_name=field_name)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Article router
# ---------------------------------------------------------------------------
article_router = APIRouter(prefix="/articles", tags=["articles"])


@article_router.put("/{scan_code}", response_model=StatusResponse)
async def register_article(scan_code: str, body: ArticleRequest) -> StatusResponse:
    get_resolver().add(scan_code, ArticleRecord(**body.model_dump()))
    return StatusResponse()


@article_router.delete("/{scan_code}", response_model=StatusResponse)
async def remove_article(scan_code: str) -> StatusResponse:
    get_resolver().remove(scan_code)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Input request router
# ---------------------------------------------------------------------------
input_request_router = APIRouter(prefix="/input-requests", tags=["input-requests"])


def _configuration(schema: ConfigurationSchema | None) -> InputConfiguration:
    if schema is None:
        return load_configuration()
    return InputConfiguration(**schema.model_dump(exclude_none=True))


def _profile(profile_id: str | None) -> ResponseProfile | None:
    if not profile_id:
        return None
    return current_domain.repository_for(ResponseProfile).get(profile_id)


@input_request_router.post("", response_model=InputResponse)
async def process_input_request(body: ProcessInputRequest) -> InputResponse:
    pipeline = InputDecisionPipeline(_configuration(body.configuration), profile=_profile(body.profile_id))
    return pipeline.process(body.request)


# ---------------------------------------------------------------------------
# Storage router
# ---------------------------------------------------------------------------
storage_router = APIRouter(prefix="/storage", tags=["storage"])


def _pack_specs(packs: list[InputPackSchema]) -> list[InputPackSpec]:
    return [InputPackSpec(**pack.model_dump()) for pack in packs]


def _outbound_response(request, serial_number: str | None = None) -> OutboundInputResponse:
    return OutboundInputResponse(
        id=request.id,
        state=request.state.value,
        articles=[
            ProcessedArticleSchema(
                id=article.id,
                name=article.name,
                packs=[
                    ProcessedPackSchema(
                        id=pack.id,
                        scan_code=pack.scan_code,
                        stored=pack.stored,
                        error_type=pack.error_type,
                        error_text=pack.error_text,
                    )
                    for pack in article.packs
                ],
            )
            for article in request.input_articles
        ],
        serial_number=serial_number,
    )


def _connection_response() -> ConnectionResponse:
    connection = get_operations().connection
    return ConnectionResponse(is_open=connection.is_open, address=connection.address, port=connection.port)


@storage_router.get("/connection", response_model=ConnectionResponse)
async def get_connection() -> ConnectionResponse:
    return _connection_response()


@storage_router.post("/connection", response_model=ConnectionResponse)
async def open_connection(body: OpenConnectionRequest) -> ConnectionResponse:
    connection = get_operations().connection
    if connection.is_open:
        raise InvalidStateError(f"Storage connection is already open to {connection.address}:{connection.port}")
    connection.open(body.address, body.port)
    return _connection_response()


@storage_router.delete("/connection", response_model=ConnectionResponse)
async def close_connection() -> ConnectionResponse:
    get_operations().connection.close()
    return _connection_response()


@storage_router.put("/responder", response_model=StatusResponse)
async def update_responder(body: ResponderSettingsRequest) -> StatusResponse:
    configuration = _configuration(body.configuration) if body.configuration is not None else None
    get_operations().responder.update(configuration=configuration, profile=_profile(body.profile_id))
    return StatusResponse()


@storage_router.post("/simulated-inputs", response_model=list[InputResponse])
async def simulate_input(request: InputRequest) -> list[InputResponse]:
    storage_system = get_operations().storage_system
    simulate = getattr(storage_system, "simulate_input", None)
    if simulate is None:
        raise InvalidOperationError("The storage system does not accept simulated input")
    return simulate(request)


@storage_router.post("/initiated-inputs", status_code=201, response_model=OutboundInputResponse)
async def start_initiated_input(body: StartInitiatedInputRequest) -> OutboundInputResponse:
    request = get_operations().initiator.send(
        body.id,
        body.input_source,
        body.input_point,
        body.destination,
        _pack_specs(body.packs),
        delivery_number=body.delivery_number,
        picking_indicator=body.picking_indicator,
    )
    return _outbound_response(request)


@storage_router.get("/initiated-inputs", response_model=list[OutboundInputResponse])
async def list_initiated_inputs() -> list[OutboundInputResponse]:
    return [_outbound_response(request) for request in get_operations().initiator.registry.snapshot()]


# Blocks until the storage system finishes the request, so it runs in the threadpool.
@storage_router.post("/infeed-inputs", response_model=OutboundInputResponse)
def start_infeed_input(body: StartInfeedInputRequest) -> OutboundInputResponse:
    infeed = get_operations().infeed
    request = infeed.send(
        body.id,
        body.infeed_number,
        body.destination,
        _pack_specs(body.packs),
        delivery_number=body.delivery_number,
        picking_indicator=body.picking_indicator,
        timeout=body.timeout,
        auto_increment_serial=body.auto_increment_serial,
    )
    return _outbound_response(request, serial_number=infeed.serial_number)


@storage_router.post("/infeed-inputs/packs-placed", response_model=StatusResponse)
async def confirm_packs_placed() -> StatusResponse:
    if not get_operations().infeed.packs_placed():
        raise InvalidStateError("No infeed input request is active")
    return StatusResponse()


@storage_router.post("/infeed-inputs/abort", response_model=StatusResponse)
async def abort_infeed_input() -> StatusResponse:
    if not get_operations().infeed.abort():
        raise InvalidStateError("No infeed input request is active")
    return StatusResponse()


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------
async def _pack_input_error_handler(request: Request, exc: PackInputError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"error": str(exc)})


async def _infeed_timeout_handler(request: Request, exc: InfeedTimeoutError) -> JSONResponse:
    return JSONResponse(status_code=504, content={"error": str(exc)})


def install_error_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP statuses on ``app``."""
    register_exception_handlers(app)
    app.add_exception_handler(PackInputError, _pack_input_error_handler)
    app.add_exception_handler(InfeedTimeoutError, _infeed_timeout_handler)
