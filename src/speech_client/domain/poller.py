import asyncio
import logging
from collections.abc import Callable, Iterable

from speech_client.domain.errors import PollCancelledError, PollDeadlineExceeded
from speech_client.domain.results import LongRunningResult, OperationHandle, TranscriptionResult
from speech_client.domain.state import PollState, validate_transition
from speech_client.ports.transport import SpeechTransportPort

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0

ResultDecoder = Callable[[bytes], Iterable[TranscriptionResult]]


class OperationPoller:
    """Drives one long-running operation to completion.

    Fetches status, waits ``poll_interval`` seconds after every not-done
    fetch, and decodes the terminal record. ``deadline`` bounds the whole
    poll; ``cancel()`` aborts it, waking any pending wait.
    """

    def __init__(
        self,
        transport: SpeechTransportPort,
        decode: ResultDecoder,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        deadline: float | None = None,
    ) -> None:
        if poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0, got {poll_interval}")
        self._transport = transport
        self._decode = decode
        self._poll_interval = poll_interval
        self._deadline = deadline
        self._state = PollState.SUBMITTED
        self._attempts = 0
        self._cancel_event = asyncio.Event()

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def attempts(self) -> int:
        return self._attempts

    def cancel(self) -> None:
        self._cancel_event.set()

    async def poll(self, handle: OperationHandle) -> LongRunningResult:
        self._transition(PollState.POLLING)
        try:
            if self._deadline is None:
                terminal = await self._poll_until_done(handle.name)
            else:
                terminal = await asyncio.wait_for(
                    self._poll_until_done(handle.name), timeout=self._deadline
                )
            result = self._assemble(terminal)
        except asyncio.TimeoutError:
            if self._deadline is None:
                self._transition(PollState.FAILED)
                raise
            self._transition(PollState.EXPIRED)
            raise PollDeadlineExceeded(handle.name, self._deadline, self._attempts) from None
        except (asyncio.CancelledError, PollCancelledError):
            self._transition(PollState.CANCELLED)
            raise
        except Exception:
            self._transition(PollState.FAILED)
            raise

        self._transition(PollState.DONE)
        return result

    async def _poll_until_done(self, name: str) -> OperationHandle:
        while True:
            if self._cancel_event.is_set():
                raise PollCancelledError(name, self._attempts)

            operation = await self._transport.get_operation(name)
            self._attempts += 1
            if operation.done:
                return operation

            logger.debug(
                "Operation %s not done after fetch %d, waiting %.2fs",
                name,
                self._attempts,
                self._poll_interval,
            )
            self._transition(PollState.POLLING)
            try:
                await asyncio.wait_for(self._cancel_event.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                continue
            raise PollCancelledError(name, self._attempts)

    def _assemble(self, operation: OperationHandle) -> LongRunningResult:
        results: tuple[TranscriptionResult, ...] = ()
        if operation.response is not None:
            results = tuple(self._decode(operation.response))
        if operation.error is not None:
            logger.warning(
                "Operation %s finished with error %d: %s",
                operation.name,
                operation.error.code,
                operation.error.message,
            )
        return LongRunningResult(operation=operation, results=results, error=operation.error)

    def _transition(self, target: PollState) -> None:
        validate_transition(self._state, target)
        if target is not self._state:
            logger.info("Poll state: %s -> %s", self._state.name, target.name)
        self._state = target
