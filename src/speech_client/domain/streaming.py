import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import Any

from speech_client.domain.errors import StreamFailureError
from speech_client.ports.transport import SpeechTransportPort

logger = logging.getLogger(__name__)

_END_OF_AUDIO = object()


class StreamingSession:
    """One duplex recognition stream.

    Outbound: a single config frame, then one frame per audio chunk in source
    order, then one half-close. Inbound: the server responses, untouched, via
    ``async for``. Each session owns its audio subscription; ``dispose`` stops
    forwarding immediately and half-closes the outbound side.
    """

    def __init__(
        self,
        transport: SpeechTransportPort,
        config_frame: Any,
        audio_source: AsyncIterable[bytes],
        audio_frame: Callable[[bytes], Any],
        on_closed: Callable[["StreamingSession"], None] | None = None,
    ) -> None:
        self._transport = transport
        self._config_frame = config_frame
        self._audio_source = audio_source
        self._audio_frame = audio_frame
        self._on_closed = on_closed

        self._outbound: asyncio.Queue[Any] = asyncio.Queue()
        self._responses: AsyncIterator[Any] | None = None
        self._forward_task: asyncio.Task | None = None
        self._audio_error: BaseException | None = None
        self._outbound_closed = False
        self._disposed = False
        self._chunks_forwarded = 0

    @property
    def chunks_forwarded(self) -> int:
        return self._chunks_forwarded

    @property
    def audio_exhausted(self) -> bool:
        return self._outbound_closed

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def open(self) -> None:
        if self._responses is not None:
            raise RuntimeError("Streaming session already opened")
        # Open the call before subscribing so a failed open leaves no task behind.
        self._responses = await self._transport.streaming_recognize(self._requests())
        self._forward_task = asyncio.create_task(self._forward_audio())
        logger.info("Streaming session opened")

    def __aiter__(self) -> "StreamingSession":
        return self

    async def __anext__(self) -> Any:
        if self._responses is None:
            raise RuntimeError("Streaming session not opened")
        try:
            return await anext(self._responses)
        except StopAsyncIteration:
            self.dispose()
            if self._audio_error is not None:
                error, self._audio_error = self._audio_error, None
                raise StreamFailureError("Audio source failed") from error
            raise
        except StreamFailureError as exc:
            self.dispose()
            if self._audio_error is not None:
                error, self._audio_error = self._audio_error, None
                exc.add_note(f"Audio source failed first: {error!r}")
            raise

    async def __aenter__(self) -> "StreamingSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self._forward_task is not None and not self._forward_task.done():
            self._forward_task.cancel()
        self._close_outbound()
        if self._on_closed is not None:
            self._on_closed(self)
        logger.info("Streaming session disposed (%d chunks forwarded)", self._chunks_forwarded)

    async def aclose(self) -> None:
        self.dispose()
        if self._forward_task is not None:
            await asyncio.gather(self._forward_task, return_exceptions=True)
        close = getattr(self._responses, "aclose", None)
        if close is not None:
            await close()

    async def _requests(self) -> AsyncIterator[Any]:
        yield self._config_frame
        while True:
            frame = await self._outbound.get()
            if frame is _END_OF_AUDIO or self._disposed:
                return
            yield frame

    async def _forward_audio(self) -> None:
        try:
            async for chunk in self._audio_source:
                if self._disposed:
                    break
                self._outbound.put_nowait(self._audio_frame(chunk))
                self._chunks_forwarded += 1
        except Exception as exc:
            logger.warning("Audio source failed after %d chunks: %s", self._chunks_forwarded, exc)
            self._audio_error = exc
        finally:
            self._close_outbound()

    def _close_outbound(self) -> None:
        if self._outbound_closed:
            return
        self._outbound_closed = True
        self._outbound.put_nowait(_END_OF_AUDIO)
        logger.debug("Outbound audio closed")
