"""Initiated input: requests the operator sends to an input point."""

import threading

import structlog
from protean.exceptions import InvalidOperationError

from pack_input.storage.port import InitiateInputRequest, InputPackSpec

logger = structlog.get_logger(__name__)


class InitiatedInputRegistry:
    """In-flight initiated input requests. Safe to use from callbacks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests: list[InitiateInputRequest] = []

    def add(self, request: InitiateInputRequest) -> None:
        with self._lock:
            self._requests.append(request)

    def remove(self, request: InitiateInputRequest) -> bool:
        with self._lock:
            if request in self._requests:
                self._requests.remove(request)
                return True
            return False

    def snapshot(self) -> list[InitiateInputRequest]:
        with self._lock:
            return list(self._requests)

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)


class InputInitiator:
    def __init__(self, storage_system, registry: InitiatedInputRegistry | None = None) -> None:
        self.storage_system = storage_system
        self.registry = registry if registry is not None else InitiatedInputRegistry()

    def send(
        self,
        request_id: str,
        input_source: int,
        input_point: int,
        destination: int,
        packs: list[InputPackSpec],
        delivery_number: str | None = None,
        picking_indicator: bool = False,
    ) -> InitiateInputRequest:
        request = self.storage_system.create_initiate_input_request(
            request_id,
            input_source,
            input_point,
            destination,
            delivery_number=delivery_number or None,
            picking_indicator=picking_indicator,
        )
        if request is None:
            raise InvalidOperationError("Input initiation is not supported by the storage system")

        request.on_finished(self._on_finished)
        self.registry.add(request)
        for pack in packs:
            request.add_input_pack(pack)

        try:
            request.start()
        except Exception as exc:
            self.registry.remove(request)
            logger.error("Initiate input request failed", request_id=request_id, error=str(exc))
            raise

        logger.info(
            "Initiate input request sent",
            request_id=request_id,
            input_source=request.input_source,
            input_point=request.input_point,
            articles=[article.id for article in request.input_articles],
        )
        return request

    def _on_finished(self, request: InitiateInputRequest) -> None:
        logger.info("Initiate input request finished", request_id=request.id, state=request.state.value)
        for article in request.input_articles:
            for pack in article.packs:
                if pack.stored:
                    logger.info("Pack stored", request_id=request.id, article_id=article.id, pack_id=pack.id)
                else:
                    logger.warning(
                        "Pack not stored",
                        request_id=request.id,
                        article_id=article.id,
                        error_type=pack.error_type,
                        error_text=pack.error_text,
                    )
        self.registry.remove(request)
