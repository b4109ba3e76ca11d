"""Configurable fake storage system for development and testing.

Simulates the storage side of the protocol without a network: inbound
pack-input requests are pushed with ``simulate_input``, outbound initiated
and infeed requests complete when told to (or automatically when configured).
"""

import threading
from itertools import count

import structlog
from protean.exceptions import InvalidOperationError

from pack_input.protocol.messages import InputRequest
from pack_input.storage.port import (
    InfeedInputRequest,
    InfeedInputState,
    InitiateInputRequest,
    InitiateInputState,
    InputPackSpec,
    ProcessedArticle,
    ProcessedPack,
    StorageSystem,
)

logger = structlog.get_logger(__name__)

_pack_ids = count(1)


def _process_packs(packs: list[InputPackSpec], error_type=None, error_text=None) -> list[ProcessedArticle]:
    articles: dict[str, list[ProcessedPack]] = {}
    for pack in packs:
        articles.setdefault(pack.scan_code, []).append(
            ProcessedPack(
                id=str(next(_pack_ids)),
                scan_code=pack.scan_code,
                error_type=error_type,
                error_text=error_text,
            )
        )
    return [
        ProcessedArticle(id=scan_code, name=f"Article {scan_code}", packs=tuple(processed))
        for scan_code, processed in articles.items()
    ]


class FakeInitiateInputRequest(InitiateInputRequest):
    def __init__(self, request_id, input_source, input_point, destination, delivery_number, picking_indicator):
        self.id = request_id
        self.state = InitiateInputState.CREATED
        self.input_source = input_source
        self.input_point = input_point
        self.destination = destination
        self.delivery_number = delivery_number
        self.picking_indicator = picking_indicator
        self.packs: list[InputPackSpec] = []
        self._articles: list[ProcessedArticle] = []
        self._finished_callbacks = []
        self.fail_with: str | None = None

    @property
    def input_articles(self):
        return list(self._articles)

    def add_input_pack(self, pack):
        self.packs.append(pack)

    def on_finished(self, callback):
        self._finished_callbacks.append(callback)

    def start(self):
        if self.fail_with:
            raise InvalidOperationError(self.fail_with)
        self.state = InitiateInputState.ACCEPTED
        self._articles = _process_packs(self.packs)

    def complete(self, error_type=None, error_text=None):
        """Finish the request as the storage system would after storing the packs."""
        self._articles = _process_packs(self.packs, error_type, error_text)
        self.state = InitiateInputState.INCOMPLETE if error_type else InitiateInputState.COMPLETED
        for callback in self._finished_callbacks:
            callback(self)


class FakeInfeedInputRequest(InfeedInputRequest):
    def __init__(self, request_id, infeed_number, destination, delivery_number, picking_indicator, auto_complete):
        self.id = request_id
        self.state = InfeedInputState.CREATED
        self.infeed_number = infeed_number
        self.destination = destination
        self.delivery_number = delivery_number
        self.picking_indicator = picking_indicator
        self.auto_complete = auto_complete
        self.packs: list[InputPackSpec] = []
        self._articles: list[ProcessedArticle] = []
        self._finished_callbacks = []
        self._place_packs_callbacks = []
        self._lock = threading.Lock()

    @property
    def input_articles(self):
        return list(self._articles)

    def add_input_pack(self, pack):
        self.packs.append(pack)

    def on_finished(self, callback):
        self._finished_callbacks.append(callback)

    def on_place_packs(self, callback):
        self._place_packs_callbacks.append(callback)

    def start(self):
        self.state = InfeedInputState.PLACING_PACKS
        for callback in self._place_packs_callbacks:
            callback(self)
        if self.auto_complete:
            self.packs_placed()

    def packs_placed(self):
        self._finish(InfeedInputState.COMPLETED)

    def abort(self):
        self._finish(InfeedInputState.ABORTED)

    def _finish(self, state):
        with self._lock:
            if self.state in (InfeedInputState.COMPLETED, InfeedInputState.ABORTED):
                return
            self.state = state
            if state == InfeedInputState.COMPLETED:
                self._articles = _process_packs(self.packs)
        for callback in self._finished_callbacks:
            callback(self)


class FakeStorageSystem(StorageSystem):
    """In-process storage system."""

    def __init__(
        self,
        supports_initiated_input: bool = True,
        supports_infeed_input: bool = True,
        infeed_auto_complete: bool = False,
    ) -> None:
        self.supports_initiated_input = supports_initiated_input
        self.supports_infeed_input = supports_infeed_input
        self.infeed_auto_complete = infeed_auto_complete
        self.address: str | None = None
        self.port: int | None = None
        self.listeners: list = []
        self.initiated_requests: list[FakeInitiateInputRequest] = []
        self.infeed_requests: list[FakeInfeedInputRequest] = []
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self, address="localhost", port=6050):
        self.address = address
        self.port = port
        self._connected = True
        logger.info("Storage system connected", address=address, port=port)

    def disconnect(self):
        self._connected = False
        logger.info("Storage system disconnected", address=self.address, port=self.port)

    def add_pack_input_listener(self, listener):
        self.listeners.append(listener)

    def remove_pack_input_listener(self, listener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    def simulate_input(self, request: InputRequest):
        """Deliver an inbound request to every listener; returns their responses."""
        if not self._connected:
            raise InvalidOperationError("Storage system is not connected")
        return [listener(request) for listener in list(self.listeners)]

    def create_initiate_input_request(
        self,
        request_id,
        input_source,
        input_point,
        destination,
        delivery_number=None,
        picking_indicator=False,
    ):
        if not self.supports_initiated_input:
            return None
        request = FakeInitiateInputRequest(
            request_id, input_source, input_point, destination, delivery_number, picking_indicator
        )
        self.initiated_requests.append(request)
        return request

    def create_infeed_input_request(
        self,
        request_id,
        infeed_number,
        destination,
        delivery_number=None,
        picking_indicator=False,
    ):
        if not self.supports_infeed_input:
            return None
        request = FakeInfeedInputRequest(
            request_id, infeed_number, destination, delivery_number, picking_indicator, self.infeed_auto_complete
        )
        self.infeed_requests.append(request)
        return request
