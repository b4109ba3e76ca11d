"""Connection-scoped wiring between a storage system and the pipeline.

Listeners are registered when a connection opens and removed when it closes,
so a disconnected storage system never reaches the decision pipeline.
"""

from datetime import date

import structlog

from pack_input.decision.pipeline import InputDecisionPipeline
from pack_input.protocol.messages import InputRequest, InputResponse
from pack_input.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


class InputResponder:
    """Answers inbound pack-input requests with the current operator settings."""

    def __init__(self, configuration, profile=None, articles=None, decoders=None, today=date.today):
        self.configuration = configuration
        self.profile = profile
        self.articles = articles
        self.decoders = decoders
        self.today = today

    def update(self, configuration=None, profile=None) -> None:
        """Swap settings; the next request picks them up."""
        if configuration is not None:
            self.configuration = configuration
        if profile is not None:
            self.profile = profile

    def __call__(self, request: InputRequest) -> InputResponse:
        pipeline = InputDecisionPipeline(
            self.configuration,
            articles=self.articles,
            decoders=self.decoders,
            profile=self.profile,
            today=self.today,
        )
        add_context(request_id=request.id)
        try:
            return pipeline.process(request)
        except Exception:
            logger.exception("Input request aborted", request_id=request.id)
            raise
        finally:
            clear_context()


class StorageConnection:
    """Owns the pack-input listener registration for one connection lifetime."""

    def __init__(self, storage_system, responder: InputResponder) -> None:
        self.storage_system = storage_system
        self.responder = responder
        self._open = False
        self.address: str | None = None
        self.port: int | None = None

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self, address: str = "localhost", port: int = 6050) -> "StorageConnection":
        if self._open:
            return self
        self.storage_system.connect(address, port)
        self.storage_system.add_pack_input_listener(self.responder)
        self._open = True
        self.address, self.port = address, port
        logger.info("Storage connection opened", address=address, port=port)
        return self

    def close(self) -> None:
        if not self._open:
            return
        self.storage_system.remove_pack_input_listener(self.responder)
        self.storage_system.disconnect()
        self._open = False
        logger.info("Storage connection closed")

    def __enter__(self) -> "StorageConnection":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
