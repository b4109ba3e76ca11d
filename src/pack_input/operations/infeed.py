"""Infeed input: one active request that waits for packs to be placed.

``send`` blocks its caller until the storage system signals completion.
``packs_placed`` and ``abort`` are called from elsewhere (an operator, an
HTTP handler) and act on whichever request is active at that moment.
"""

import threading
from dataclasses import replace

import structlog
from protean.exceptions import InvalidOperationError

from pack_input.exceptions import InfeedTimeoutError
from pack_input.storage.port import InfeedInputRequest, InfeedInputState, InputPackSpec

logger = structlog.get_logger(__name__)


def next_serial_number(serial: str | None) -> str | None:
    """Increment a numeric serial number.

    Leading zeros are kept in front of the incremented value, so ``"0099"``
    becomes ``"00100"``. Serials that are not a positive number come back
    unchanged.
    """
    if not serial or not (serial.isascii() and serial.isdigit()):
        return serial
    value = int(serial)
    if value <= 0:
        return serial
    incremented = str(value + 1)
    leading_zeros = len(serial) - len(serial.lstrip("0"))
    return incremented.zfill(leading_zeros + len(incremented))


class InfeedInputController:
    def __init__(self, storage_system) -> None:
        self.storage_system = storage_system
        self._lock = threading.Lock()
        self._active: InfeedInputRequest | None = None
        self.serial_number: str | None = None

    @property
    def active(self) -> InfeedInputRequest | None:
        with self._lock:
            return self._active

    def _swap(self, request: InfeedInputRequest | None) -> InfeedInputRequest | None:
        with self._lock:
            previous, self._active = self._active, request
            return previous

    def _clear(self, request: InfeedInputRequest) -> None:
        with self._lock:
            if self._active is request:
                self._active = None

    def send(
        self,
        request_id: str,
        infeed_number: int,
        destination: int,
        packs: list[InputPackSpec],
        delivery_number: str | None = None,
        picking_indicator: bool = False,
        timeout: float | None = None,
        auto_increment_serial: bool = False,
    ) -> InfeedInputRequest:
        """Start an infeed input and wait until it finished.

        With ``auto_increment_serial`` packs without a serial number take
        ``serial_number``, and a completed request advances it past the
        serial of its last pack.

        Raises InfeedTimeoutError when ``timeout`` seconds pass first; the
        request stays active so it can still be aborted.
        """
        if auto_increment_serial and self.serial_number:
            packs = [pack if pack.serial_number else replace(pack, serial_number=self.serial_number) for pack in packs]

        request = self.storage_system.create_infeed_input_request(
            request_id,
            infeed_number,
            destination,
            delivery_number=delivery_number or None,
            picking_indicator=picking_indicator,
        )
        if request is None:
            raise InvalidOperationError("Infeed input is not supported by the storage system")

        finished = threading.Event()

        def on_finished(finished_request):
            self._clear(finished_request)
            finished.set()

        request.on_finished(on_finished)
        request.on_place_packs(self._on_place_packs)
        previous = self._swap(request)
        if previous is not None:
            logger.warning("Replacing active infeed input request", previous_id=previous.id, request_id=request_id)

        for pack in packs:
            request.add_input_pack(pack)

        try:
            request.start()
        except Exception as exc:
            self._clear(request)
            logger.error("Infeed input request failed", request_id=request_id, error=str(exc))
            raise

        logger.info("Infeed input request sent", request_id=request_id, infeed_number=request.infeed_number)

        if not finished.wait(timeout):
            raise InfeedTimeoutError(f"Infeed input request {request_id} did not finish within {timeout}s")

        logger.info("Infeed input request finished", request_id=request_id, state=request.state.value)
        for article in request.input_articles:
            for pack in article.packs:
                logger.info("Pack stored", request_id=request_id, article_id=article.id, pack_id=pack.id)
        if auto_increment_serial and packs and request.state == InfeedInputState.COMPLETED:
            self.serial_number = next_serial_number(packs[-1].serial_number)
            logger.info("Serial number advanced", request_id=request_id, serial_number=self.serial_number)
        return request

    def packs_placed(self) -> bool:
        """Confirm placement for the active request. False when none is active."""
        request = self.active
        if request is None:
            return False
        request.packs_placed()
        return True

    def abort(self) -> bool:
        request = self.active
        if request is None:
            return False
        request.abort()
        return True

    def _on_place_packs(self, request: InfeedInputRequest) -> None:
        logger.info("Storage system waits for packs", request_id=request.id, infeed_number=request.infeed_number)
