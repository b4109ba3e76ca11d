"""Storage system port (abstract interface).

Defines what the simulator needs from the connection to a storage system:
connection lifecycle, delivery of inbound pack-input requests to a listener,
and the outbound requests an operator can send (initiated input and infeed
input). Adapters hide the wire protocol.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class InitiateInputState(Enum):
    CREATED = "Created"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    COMPLETED = "Completed"
    INCOMPLETE = "Incomplete"
    UNKNOWN = "Unknown"


class InfeedInputState(Enum):
    CREATED = "Created"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    PLACING_PACKS = "PlacingPacks"
    COMPLETED = "Completed"
    ABORTED = "Aborted"
    INCOMPLETE = "Incomplete"


class PackShape(Enum):
    CUBOID = "Cuboid"
    CYLINDER = "Cylinder"
    BOTTLE = "Bottle"


@dataclass(frozen=True)
class InputPackSpec:
    """A pack the operator asks the storage system to take in."""

    scan_code: str
    batch_number: str | None = None
    external_id: str | None = None
    expiry_date: date | None = None
    sub_item_quantity: int = 0
    depth: int = 0
    width: int = 0
    height: int = 0
    shape: PackShape = PackShape.CUBOID
    stock_location_id: str | None = None
    serial_number: str | None = None


@dataclass(frozen=True)
class ProcessedPack:
    """Outcome for one pack of an outbound input request."""

    id: str
    scan_code: str
    error_type: str | None = None
    error_text: str | None = None

    @property
    def stored(self) -> bool:
        return self.error_type is None


@dataclass(frozen=True)
class ProcessedArticle:
    id: str
    name: str | None = None
    dosage_form: str | None = None
    packaging_unit: str | None = None
    packs: tuple[ProcessedPack, ...] = field(default_factory=tuple)


class InitiateInputRequest(ABC):
    """An input the operator initiates at an input point."""

    id: str
    state: InitiateInputState
    input_source: int
    input_point: int

    @property
    @abstractmethod
    def input_articles(self) -> list[ProcessedArticle]:
        ...

    @abstractmethod
    def add_input_pack(self, pack: InputPackSpec) -> None:
        ...

    @abstractmethod
    def on_finished(self, callback: Callable) -> None:
        """Register a callback invoked with the request once it finished."""
        ...

    @abstractmethod
    def start(self) -> None:
        """Send the request to the storage system."""
        ...


class InfeedInputRequest(ABC):
    """An input through an infeed that waits for the operator to place packs."""

    id: str
    state: InfeedInputState
    infeed_number: int

    @property
    @abstractmethod
    def input_articles(self) -> list[ProcessedArticle]:
        ...

    @abstractmethod
    def add_input_pack(self, pack: InputPackSpec) -> None:
        ...

    @abstractmethod
    def on_finished(self, callback: Callable) -> None:
        ...

    @abstractmethod
    def on_place_packs(self, callback: Callable) -> None:
        """Register a callback invoked when the storage system asks for the packs."""
        ...

    @abstractmethod
    def start(self) -> None:
        ...

    @abstractmethod
    def packs_placed(self) -> None:
        """Confirm that the packs were physically placed on the infeed."""
        ...

    @abstractmethod
    def abort(self) -> None:
        ...


class StorageSystem(ABC):
    """Abstract connection to a storage system."""

    @property
    @abstractmethod
    def connected(self) -> bool:
        ...

    @abstractmethod
    def connect(self, address: str, port: int) -> None:
        ...

    @abstractmethod
    def disconnect(self) -> None:
        ...

    @abstractmethod
    def add_pack_input_listener(self, listener: Callable) -> None:
        """Register a callable receiving every inbound InputRequest."""
        ...

    @abstractmethod
    def remove_pack_input_listener(self, listener: Callable) -> None:
        ...

    @abstractmethod
    def create_initiate_input_request(
        self,
        request_id: str,
        input_source: int,
        input_point: int,
        destination: int,
        delivery_number: str | None = None,
        picking_indicator: bool = False,
    ) -> InitiateInputRequest | None:
        """Return a new request, or None when the storage system lacks support."""
        ...

    @abstractmethod
    def create_infeed_input_request(
        self,
        request_id: str,
        infeed_number: int,
        destination: int,
        delivery_number: str | None = None,
        picking_indicator: bool = False,
    ) -> InfeedInputRequest | None:
        """Return a new request, or None when the storage system lacks support."""
        ...
