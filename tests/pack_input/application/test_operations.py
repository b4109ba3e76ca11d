"""Application tests for storage connections, initiated input and infeed input."""

import threading
import time

import pytest
from protean.exceptions import InvalidOperationError

from pack_input.articles import ArticleRecord
from pack_input.decision.configuration import InputConfiguration
from pack_input.exceptions import ArticleAssignmentError, InfeedTimeoutError
from pack_input.operations import get_operations, reset_operations
from pack_input.operations.connection import InputResponder, StorageConnection
from pack_input.operations.infeed import InfeedInputController, next_serial_number
from pack_input.operations.initiated import InitiatedInputRegistry, InputInitiator
from pack_input.protocol.messages import InputHandlingKind, InputRequest, Pack
from pack_input.storage import get_storage_system, reset_storage_system, set_storage_system
from pack_input.storage.fake_adapter import FakeStorageSystem
from pack_input.storage.port import InfeedInputState, InitiateInputState, InputPackSpec


def _request(*scan_codes):
    return InputRequest(id="req-1", packs=[Pack(scan_code=code) for code in scan_codes])


@pytest.fixture()
def storage():
    return FakeStorageSystem()


@pytest.fixture()
def responder(articles, today):
    return InputResponder(InputConfiguration(), articles=articles, today=today)


class TestStorageSystemFactory:
    def test_default_is_fake(self):
        reset_storage_system()
        assert isinstance(get_storage_system(), FakeStorageSystem)

    def test_set_and_reset(self, storage):
        set_storage_system(storage)
        assert get_storage_system() is storage
        reset_storage_system()
        assert get_storage_system() is not storage


class TestStorageOperations:
    def test_built_around_current_storage_system(self, storage):
        set_storage_system(storage)
        reset_operations()

        operations = get_operations()

        assert operations.storage_system is storage
        assert operations.connection.responder is operations.responder
        assert get_operations() is operations
        reset_operations()
        reset_storage_system()

    def test_reset_closes_the_connection(self, storage):
        set_storage_system(storage)
        reset_operations()
        get_operations().connection.open()

        reset_operations()

        assert storage.connected is False
        assert storage.listeners == []
        reset_storage_system()


class TestStorageConnection:
    def test_open_registers_the_responder(self, storage, responder):
        connection = StorageConnection(storage, responder).open("10.0.0.5", 6052)

        assert connection.is_open is True
        assert storage.connected is True
        assert storage.address == "10.0.0.5"
        assert storage.listeners == [responder]

    def test_inbound_request_is_answered(self, storage, responder):
        with StorageConnection(storage, responder):
            [response] = storage.simulate_input(_request("4711", "0815"))

        assert [pack.handling.kind for pack in response.packs] == [
            InputHandlingKind.ALLOWED,
            InputHandlingKind.ALLOWED_FOR_FRIDGE,
        ]

    def test_close_unregisters_the_responder(self, storage, responder):
        with StorageConnection(storage, responder) as connection:
            pass

        assert connection.is_open is False
        assert storage.listeners == []
        with pytest.raises(InvalidOperationError):
            storage.simulate_input(_request("4711"))

    def test_opening_twice_registers_once(self, storage, responder):
        connection = StorageConnection(storage, responder)
        connection.open()
        connection.open()
        assert len(storage.listeners) == 1

    def test_updated_configuration_applies_to_next_request(self, storage, responder):
        with StorageConnection(storage, responder):
            responder.update(configuration=InputConfiguration(allow_stock_return_input=False))
            [response] = storage.simulate_input(_request("4711"))

        assert response.packs[0].handling.kind == InputHandlingKind.REJECTED

    def test_failure_propagates_to_the_transport(self, storage, articles, today):
        articles.add("BROKEN", ArticleRecord(id="", name="Broken"))
        responder = InputResponder(InputConfiguration(), articles=articles, today=today)
        request = InputRequest(id="req-2", delivery_number="DLV-1", packs=[Pack(scan_code="BROKEN")])

        with StorageConnection(storage, responder), pytest.raises(ArticleAssignmentError):
            storage.simulate_input(request)

        assert request.is_finished is False


class TestInitiatedInput:
    def test_send_starts_and_registers(self, storage):
        initiator = InputInitiator(storage)

        request = initiator.send("init-1", 1, 2, 999, [InputPackSpec(scan_code="4711")])

        assert request.state == InitiateInputState.ACCEPTED
        assert request.packs == [InputPackSpec(scan_code="4711")]
        assert initiator.registry.snapshot() == [request]

    def test_finished_request_leaves_registry(self, storage):
        initiator = InputInitiator(storage)
        request = initiator.send("init-1", 1, 2, 999, [InputPackSpec(scan_code="4711")])

        request.complete()

        assert request.state == InitiateInputState.COMPLETED
        assert len(initiator.registry) == 0
        assert all(pack.stored for article in request.input_articles for pack in article.packs)

    def test_incomplete_request(self, storage):
        initiator = InputInitiator(storage)
        request = initiator.send("init-1", 1, 2, 999, [InputPackSpec(scan_code="4711")])

        request.complete(error_type="Rejected", error_text="No space")

        assert request.state == InitiateInputState.INCOMPLETE
        assert not any(pack.stored for article in request.input_articles for pack in article.packs)

    def test_empty_delivery_number_is_dropped(self, storage):
        request = InputInitiator(storage).send("init-1", 1, 2, 999, [], delivery_number="")
        assert request.delivery_number is None

    def test_start_failure_unregisters(self, storage):
        registry = InitiatedInputRegistry()
        initiator = InputInitiator(storage, registry)
        original = storage.create_initiate_input_request

        def failing(*args, **kwargs):
            request = original(*args, **kwargs)
            request.fail_with = "Input point busy"
            return request

        storage.create_initiate_input_request = failing

        with pytest.raises(InvalidOperationError):
            initiator.send("init-1", 1, 2, 999, [])
        assert len(registry) == 0

    def test_unsupported(self):
        with pytest.raises(InvalidOperationError):
            InputInitiator(FakeStorageSystem(supports_initiated_input=False)).send("init-1", 1, 2, 999, [])


class TestInfeedInput:
    def _send_in_background(self, controller, **kwargs):
        result = {}

        def run():
            try:
                result["request"] = controller.send("infeed-1", 1, 999, [InputPackSpec(scan_code="4711")], **kwargs)
            except Exception as exc:  # noqa: BLE001
                result["error"] = exc

        thread = threading.Thread(target=run)
        thread.start()
        return thread, result

    def _wait_for_active(self, controller):
        deadline = time.monotonic() + 5
        while controller.active is None and time.monotonic() < deadline:
            time.sleep(0.01)
        assert controller.active is not None

    def test_auto_complete(self):
        controller = InfeedInputController(FakeStorageSystem(infeed_auto_complete=True))

        request = controller.send("infeed-1", 1, 999, [InputPackSpec(scan_code="4711")], timeout=5)

        assert request.state == InfeedInputState.COMPLETED
        assert controller.active is None
        assert [article.id for article in request.input_articles] == ["4711"]

    def test_packs_placed_releases_the_sender(self, storage):
        controller = InfeedInputController(storage)
        thread, result = self._send_in_background(controller, timeout=5)
        self._wait_for_active(controller)

        assert controller.packs_placed() is True
        thread.join(5)

        assert result["request"].state == InfeedInputState.COMPLETED
        assert controller.active is None

    def test_abort_releases_the_sender(self, storage):
        controller = InfeedInputController(storage)
        thread, result = self._send_in_background(controller, timeout=5)
        self._wait_for_active(controller)

        assert controller.abort() is True
        thread.join(5)

        assert result["request"].state == InfeedInputState.ABORTED
        assert result["request"].input_articles == []

    def test_timeout_keeps_request_abortable(self, storage):
        controller = InfeedInputController(storage)

        with pytest.raises(InfeedTimeoutError):
            controller.send("infeed-1", 1, 999, [], timeout=0.05)

        assert controller.active is not None
        assert controller.abort() is True
        assert controller.active is None

    def test_completed_request_advances_serial_number(self):
        controller = InfeedInputController(FakeStorageSystem(infeed_auto_complete=True))
        packs = [
            InputPackSpec(scan_code="4711", serial_number="0098"),
            InputPackSpec(scan_code="4711", serial_number="0099"),
        ]

        controller.send("infeed-1", 1, 999, packs, timeout=5, auto_increment_serial=True)

        assert controller.serial_number == "00100"

    def test_packs_without_serial_take_the_current_one(self):
        storage = FakeStorageSystem(infeed_auto_complete=True)
        controller = InfeedInputController(storage)
        first = InputPackSpec(scan_code="4711", serial_number="0099")
        controller.send("infeed-1", 1, 999, [first], auto_increment_serial=True)

        controller.send("infeed-2", 1, 999, [InputPackSpec(scan_code="4711")], auto_increment_serial=True)

        assert storage.infeed_requests[-1].packs[0].serial_number == "00100"
        assert controller.serial_number == "00101"

    def test_serial_number_untouched_without_auto_increment(self):
        controller = InfeedInputController(FakeStorageSystem(infeed_auto_complete=True))

        controller.send("infeed-1", 1, 999, [InputPackSpec(scan_code="4711", serial_number="0099")], timeout=5)

        assert controller.serial_number is None

    def test_aborted_request_keeps_serial_number(self, storage):
        controller = InfeedInputController(storage)
        result = {}

        def run():
            pack = InputPackSpec(scan_code="4711", serial_number="0099")
            result["request"] = controller.send("infeed-1", 1, 999, [pack], timeout=5, auto_increment_serial=True)

        thread = threading.Thread(target=run)
        thread.start()
        self._wait_for_active(controller)
        controller.abort()
        thread.join(5)

        assert result["request"].state == InfeedInputState.ABORTED
        assert controller.serial_number is None

    def test_nothing_active(self, storage):
        controller = InfeedInputController(storage)
        assert controller.packs_placed() is False
        assert controller.abort() is False

    def test_unsupported(self):
        controller = InfeedInputController(FakeStorageSystem(supports_infeed_input=False))
        with pytest.raises(InvalidOperationError):
            controller.send("infeed-1", 1, 999, [])


class TestNextSerialNumber:
    @pytest.mark.parametrize(
        "serial, expected",
        [
            ("0001", "0002"),
            ("0099", "00100"),
            ("0999", "01000"),
            ("999", "1000"),
            ("9", "10"),
            ("0000", "0000"),
            ("SN-1", "SN-1"),
            ("12\u00b2", "12\u00b2"),
            ("", ""),
            (None, None),
        ],
    )
    def test_increments_numeric_serials(self, serial, expected):
        assert next_serial_number(serial) == expected
