import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

import grpc
from google.cloud.speech_v1 import types as cloud_speech
from google.longrunning import operations_pb2

from speech_client.adapters.codec import operation_handle_from_pb
from speech_client.domain.errors import RejectedRequestError, StreamFailureError
from speech_client.domain.results import OperationHandle
from speech_client.ports.authenticator import AuthenticatorPort

logger = logging.getLogger(__name__)

SPEECH_SERVICE = "google.cloud.speech.v1.Speech"
OPERATIONS_SERVICE = "google.longrunning.Operations"


class GrpcSpeechTransport:
    """Speech and Operations calls over one shared gRPC channel.

    The channel is created on first use so it binds to the running event loop.
    Authorization metadata is fetched from the authenticator for every call.
    """

    def __init__(
        self,
        target: str,
        authenticator: AuthenticatorPort,
        secure: bool = True,
    ) -> None:
        self._target = target
        self._authenticator = authenticator
        self._secure = secure
        self._channel: grpc.aio.Channel | None = None

    @property
    def target(self) -> str:
        return self._target

    async def recognize(self, request: cloud_speech.RecognizeRequest) -> cloud_speech.RecognizeResponse:
        self._ensure_channel()
        metadata = await self._authenticator.metadata()
        try:
            return await self._recognize(request, metadata=metadata)
        except grpc.aio.AioRpcError as exc:
            raise _rejected("Recognize", exc) from exc

    async def streaming_recognize(
        self, requests: AsyncIterable[cloud_speech.StreamingRecognizeRequest]
    ) -> AsyncIterator[cloud_speech.StreamingRecognizeResponse]:
        self._ensure_channel()
        metadata = await self._authenticator.metadata()
        call = self._streaming_recognize(requests, metadata=metadata)
        try:
            await call.wait_for_connection()
        except grpc.aio.AioRpcError as exc:
            raise _rejected("StreamingRecognize", exc) from exc
        return self._stream_responses(call)

    async def long_running_recognize(
        self, request: cloud_speech.LongRunningRecognizeRequest
    ) -> OperationHandle:
        self._ensure_channel()
        metadata = await self._authenticator.metadata()
        try:
            operation = await self._long_running_recognize(request, metadata=metadata)
        except grpc.aio.AioRpcError as exc:
            raise _rejected("LongRunningRecognize", exc) from exc
        return operation_handle_from_pb(operation)

    async def get_operation(self, name: str) -> OperationHandle:
        self._ensure_channel()
        metadata = await self._authenticator.metadata()
        try:
            operation = await self._get_operation(
                operations_pb2.GetOperationRequest(name=name), metadata=metadata
            )
        except grpc.aio.AioRpcError as exc:
            raise _rejected("GetOperation", exc) from exc
        return operation_handle_from_pb(operation)

    async def close(self) -> None:
        if self._channel is not None:
            await self._channel.close()
            self._channel = None
            logger.info("Channel to %s closed", self._target)

    async def _stream_responses(self, call) -> AsyncIterator[cloud_speech.StreamingRecognizeResponse]:
        try:
            async for response in call:
                yield response
        except grpc.aio.AioRpcError as exc:
            raise StreamFailureError(
                f"StreamingRecognize failed: {exc.code().name} {exc.details() or ''}".rstrip()
            ) from exc
        finally:
            if not call.done():
                call.cancel()

    def _ensure_channel(self) -> None:
        if self._channel is not None:
            return
        if self._secure:
            channel = grpc.aio.secure_channel(self._target, grpc.ssl_channel_credentials())
        else:
            channel = grpc.aio.insecure_channel(self._target)
        self._channel = channel
        self._recognize = channel.unary_unary(
            f"/{SPEECH_SERVICE}/Recognize",
            request_serializer=cloud_speech.RecognizeRequest.serialize,
            response_deserializer=cloud_speech.RecognizeResponse.deserialize,
        )
        self._streaming_recognize = channel.stream_stream(
            f"/{SPEECH_SERVICE}/StreamingRecognize",
            request_serializer=cloud_speech.StreamingRecognizeRequest.serialize,
            response_deserializer=cloud_speech.StreamingRecognizeResponse.deserialize,
        )
        self._long_running_recognize = channel.unary_unary(
            f"/{SPEECH_SERVICE}/LongRunningRecognize",
            request_serializer=cloud_speech.LongRunningRecognizeRequest.serialize,
            response_deserializer=operations_pb2.Operation.FromString,
        )
        self._get_operation = channel.unary_unary(
            f"/{OPERATIONS_SERVICE}/GetOperation",
            request_serializer=operations_pb2.GetOperationRequest.SerializeToString,
            response_deserializer=operations_pb2.Operation.FromString,
        )
        logger.info("Channel to %s opened (secure=%s)", self._target, self._secure)


def _rejected(method: str, exc: grpc.aio.AioRpcError) -> RejectedRequestError:
    return RejectedRequestError(method, exc.code().name, exc.details() or "")
