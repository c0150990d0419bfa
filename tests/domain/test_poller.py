import asyncio
import time

import pytest

from speech_client.adapters.codec import decode_results
from speech_client.domain.errors import (
    DecodeError,
    InvalidTransitionError,
    PollCancelledError,
    PollDeadlineExceeded,
    RejectedRequestError,
)
from speech_client.domain.poller import OperationPoller
from speech_client.domain.results import OperationError, OperationHandle
from speech_client.domain.state import PollState
from tests.conftest import TWO_RESULTS, make_result_payload

INTERVAL = 0.02
HANDLE = OperationHandle(name="operations/1234")


@pytest.fixture
def poller(fake_transport):
    return OperationPoller(fake_transport, decode_results, poll_interval=INTERVAL)


class TestPollLoop:
    @pytest.mark.asyncio
    async def test_fetches_until_done_at_interval(self, fake_transport, poller):
        fake_transport.queue_operations(not_done=2, payload=make_result_payload(TWO_RESULTS))

        started = time.monotonic()
        result = await poller.poll(HANDLE)
        elapsed = time.monotonic() - started

        assert len(fake_transport.fetches) == 3
        assert poller.attempts == 3
        assert elapsed >= 2 * INTERVAL
        assert all(name == HANDLE.name for name, _ in fake_transport.fetches)
        gaps = [b - a for (_, a), (_, b) in zip(fake_transport.fetches, fake_transport.fetches[1:])]
        assert all(gap >= INTERVAL * 0.9 for gap in gaps)
        assert len(result.results) == 2
        assert poller.state is PollState.DONE

    @pytest.mark.asyncio
    async def test_no_wait_after_done(self, fake_transport):
        fake_transport.queue_operations(not_done=0, payload=make_result_payload([]))
        poller = OperationPoller(fake_transport, decode_results, poll_interval=5.0)

        result = await asyncio.wait_for(poller.poll(HANDLE), timeout=1.0)

        assert len(fake_transport.fetches) == 1
        assert result.results == ()

    @pytest.mark.asyncio
    async def test_operation_error_is_passed_through(self, fake_transport, poller):
        error = OperationError(code=3, message="Invalid audio URI", details=("detail",))
        fake_transport.queue_operations(not_done=1, error=error)

        result = await poller.poll(HANDLE)

        assert result.error == error
        assert result.results == ()
        assert result.operation.done

    @pytest.mark.asyncio
    async def test_decode_error_is_fatal(self, fake_transport, poller):
        fake_transport.queue_operations(not_done=0, payload=b"\xff\xff\xff")

        with pytest.raises(DecodeError):
            await poller.poll(HANDLE)

        assert poller.state is PollState.FAILED

    @pytest.mark.asyncio
    async def test_rejected_fetch_propagates(self, fake_transport, poller):
        fake_transport.operations = [
            OperationHandle(name=HANDLE.name),
            RejectedRequestError("GetOperation", "NOT_FOUND", "no such operation"),
        ]

        with pytest.raises(RejectedRequestError):
            await poller.poll(HANDLE)

        assert poller.state is PollState.FAILED

    @pytest.mark.asyncio
    async def test_poller_is_single_use(self, fake_transport, poller):
        fake_transport.queue_operations(not_done=0, payload=make_result_payload([]))
        await poller.poll(HANDLE)

        with pytest.raises(InvalidTransitionError):
            await poller.poll(HANDLE)

    def test_negative_interval_rejected(self, fake_transport):
        with pytest.raises(ValueError):
            OperationPoller(fake_transport, decode_results, poll_interval=-1)


class TestBoundedPolling:
    @pytest.mark.asyncio
    async def test_deadline_exceeded(self, fake_transport):
        fake_transport.operations = [OperationHandle(name=HANDLE.name)]
        poller = OperationPoller(fake_transport, decode_results, poll_interval=INTERVAL, deadline=0.1)

        with pytest.raises(PollDeadlineExceeded) as exc_info:
            await poller.poll(HANDLE)

        assert exc_info.value.operation_name == HANDLE.name
        assert exc_info.value.attempts >= 2
        assert poller.state is PollState.EXPIRED

    @pytest.mark.asyncio
    async def test_cancel_wakes_pending_wait(self, fake_transport):
        fake_transport.operations = [OperationHandle(name=HANDLE.name)]
        poller = OperationPoller(fake_transport, decode_results, poll_interval=10.0)

        task = asyncio.create_task(poller.poll(HANDLE))
        await asyncio.sleep(0.05)
        poller.cancel()

        with pytest.raises(PollCancelledError):
            await asyncio.wait_for(task, timeout=1.0)
        assert len(fake_transport.fetches) == 1
        assert poller.state is PollState.CANCELLED

    @pytest.mark.asyncio
    async def test_task_cancellation(self, fake_transport):
        fake_transport.operations = [OperationHandle(name=HANDLE.name)]
        poller = OperationPoller(fake_transport, decode_results, poll_interval=10.0)

        task = asyncio.create_task(poller.poll(HANDLE))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert poller.state is PollState.CANCELLED
