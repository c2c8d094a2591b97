import asyncio

import pytest

from qbremote.client import QbittorrentClient
from qbremote.detector import (
    SingleFlight,
    classify,
    parse_v1_level,
    parse_v2_version,
)
from qbremote.exceptions import DecodeError, DetectionFailed, RequestFailed
from qbremote.types import ApiGeneration, ApiVersion, ClientState

from .conftest import FakeDaemon


class TestClassify:
    @pytest.mark.parametrize(
        "version, generation",
        [
            (ApiVersion(1, 18, 0), ApiGeneration.V1),
            (ApiVersion(1, 99, 99), ApiGeneration.V1),
            (ApiVersion(2, 0, 0), ApiGeneration.V2),
            (ApiVersion(2, 8, 3), ApiGeneration.V2),
        ],
    )
    def test_threshold(self, version, generation):
        assert classify(version).generation == generation
        assert classify(version).version == version

    def test_parse_dotted_version(self):
        assert parse_v2_version(b"2.8.3") == ApiVersion(2, 8, 3)
        assert parse_v2_version(b"2.0\n") == ApiVersion(2, 0, 0)

    @pytest.mark.parametrize("body", [b"", b"abc", b"2.x", b"1.2.3.4", b"\xff"])
    def test_parse_malformed_version(self, body):
        with pytest.raises(DecodeError):
            parse_v2_version(body)

    def test_parse_legacy_level(self):
        assert parse_v1_level(b"18") == ApiVersion(1, 18, 0)
        with pytest.raises(DecodeError):
            parse_v1_level(b"eighteen")


class TestSingleFlight:
    async def test_concurrent_callers_share_one_computation(self):
        calls = 0
        gate = asyncio.Event()

        async def factory():
            nonlocal calls
            calls += 1
            await gate.wait()
            return object()

        flight = SingleFlight(factory)
        tasks = [asyncio.create_task(flight.get()) for _ in range(10)]
        await asyncio.sleep(0)
        assert flight.is_running
        gate.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert all(_ is results[0] for _ in results)
        assert flight.is_done
        assert await flight.get() is results[0]
        assert calls == 1

    async def test_failure_is_not_memoized(self):
        outcomes = [RuntimeError("boom"), "value"]

        async def factory():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        flight = SingleFlight(factory)
        with pytest.raises(RuntimeError):
            await flight.get()
        assert not flight.is_done
        assert not flight.is_running
        assert await flight.get() == "value"

    async def test_cancelling_one_waiter_keeps_the_computation(self):
        gate = asyncio.Event()

        async def factory():
            await gate.wait()
            return 42

        flight = SingleFlight(factory)
        first = asyncio.create_task(flight.get())
        second = asyncio.create_task(flight.get())
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        gate.set()
        assert await second == 42
        assert flight.value == 42


async def _wait_for_version_query(daemon: FakeDaemon) -> None:
    while daemon.count(daemon.version_path) == 0:
        await asyncio.sleep(0.01)


class TestCapabilityDetection:
    async def test_detects_v2(self, v2_client: QbittorrentClient):
        capability = await v2_client.ensure_detected()
        assert capability.generation == ApiGeneration.V2
        assert capability.version == ApiVersion(2, 8, 3)
        assert v2_client.state == ClientState.READY

    async def test_detects_v1_after_404(
        self, v1_client: QbittorrentClient, v1_daemon: FakeDaemon
    ):
        capability = await v1_client.ensure_detected()
        assert capability.generation == ApiGeneration.V1
        assert capability.version == ApiVersion(1, 18, 0)
        assert v1_daemon.count("/api/v2/app/webapiVersion") == 1
        assert v1_daemon.count("/version/api") == 1

    async def test_concurrent_first_operations_query_version_once(
        self, v2_client: QbittorrentClient, v2_daemon: FakeDaemon
    ):
        v2_daemon.version_gate = asyncio.Event()
        tasks = [asyncio.create_task(v2_client.ensure_detected()) for _ in range(8)]
        await _wait_for_version_query(v2_daemon)
        assert v2_client.state == ClientState.DETECTING

        v2_daemon.version_gate.set()
        results = await asyncio.gather(*tasks)

        assert v2_daemon.count(v2_daemon.version_path) == 1
        assert all(_ == results[0] for _ in results)

    async def test_cancelled_operation_keeps_shared_detection(
        self, v2_client: QbittorrentClient, v2_daemon: FakeDaemon
    ):
        v2_daemon.version_gate = asyncio.Event()
        first = asyncio.create_task(v2_client.get_qbittorrent_version())
        second = asyncio.create_task(v2_client.ensure_detected())
        await _wait_for_version_query(v2_daemon)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        v2_daemon.version_gate.set()
        capability = await second
        assert capability.generation == ApiGeneration.V2
        assert v2_daemon.count(v2_daemon.version_path) == 1

    async def test_malformed_version_is_retried(
        self, v2_client: QbittorrentClient, v2_daemon: FakeDaemon
    ):
        v2_daemon.reply("GET", v2_daemon.version_path, "not-a-version")
        with pytest.raises(DetectionFailed) as exc_info:
            await v2_client.ensure_detected()
        assert isinstance(exc_info.value.__cause__, DecodeError)
        assert v2_client.capability is None
        assert v2_client.state == ClientState.UNINITIALIZED

        v2_daemon.forget("GET", v2_daemon.version_path)
        capability = await v2_client.ensure_detected()
        assert capability.version == ApiVersion(2, 8, 3)
        assert v2_daemon.count(v2_daemon.version_path) == 2

    async def test_server_error_is_not_treated_as_legacy(
        self, v2_client: QbittorrentClient, v2_daemon: FakeDaemon
    ):
        v2_daemon.reply("GET", v2_daemon.version_path, "oops", status=500)
        with pytest.raises(DetectionFailed) as exc_info:
            await v2_client.ensure_detected()
        cause = exc_info.value.__cause__
        assert isinstance(cause, RequestFailed)
        assert cause.status_code == 500
        assert v2_daemon.count("/version/api") == 0
