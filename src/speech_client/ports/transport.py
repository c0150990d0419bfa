from collections.abc import AsyncIterable, AsyncIterator
from typing import Any, Protocol

from speech_client.domain.results import OperationHandle


class SpeechTransportPort(Protocol):
    async def recognize(self, request: Any) -> Any: ...
    async def streaming_recognize(self, requests: AsyncIterable[Any]) -> AsyncIterator[Any]: ...
    async def long_running_recognize(self, request: Any) -> OperationHandle: ...
    async def get_operation(self, name: str) -> OperationHandle: ...
    async def close(self) -> None: ...
