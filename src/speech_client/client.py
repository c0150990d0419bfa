import logging
from collections.abc import AsyncIterable
from pathlib import Path

from google.cloud.speech_v1 import types as cloud_speech

from speech_client.adapters.codec import decode_results
from speech_client.adapters.request_builder import (
    build_audio_request,
    build_long_running_request,
    build_recognize_request,
    build_streaming_config_request,
)
from speech_client.domain.poller import DEFAULT_POLL_INTERVAL, OperationPoller, ResultDecoder
from speech_client.domain.recognition_config import RecognitionConfig, StreamingRecognitionConfig
from speech_client.domain.results import LongRunningResult, OperationHandle
from speech_client.domain.streaming import StreamingSession
from speech_client.ports.authenticator import AuthenticatorPort
from speech_client.ports.transport import SpeechTransportPort

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "speech.googleapis.com"
DEFAULT_PORT = 443


class SpeechToText:
    """Client for the Speech-to-Text API over gRPC.

    Build it with one of the ``via_*`` constructors, which differ only in how
    per-call authorization metadata is produced. All calls share one channel.

    Audio sent with ``recognize`` must be shorter than 60 seconds; longer audio
    has to be stored in Cloud Storage and sent with ``long_running_recognize``
    or ``polling_long_running_recognize``.
    """

    def __init__(self, transport: SpeechTransportPort, decode: ResultDecoder = decode_results) -> None:
        self._transport = transport
        self._decode = decode
        self._sessions: set[StreamingSession] = set()

    @classmethod
    def with_authenticator(
        cls,
        authenticator: AuthenticatorPort,
        endpoint: str = DEFAULT_ENDPOINT,
        secure: bool = True,
    ) -> "SpeechToText":
        from speech_client.adapters.grpc_transport import GrpcSpeechTransport

        target = endpoint if ":" in endpoint else f"{endpoint}:{DEFAULT_PORT}"
        return cls(GrpcSpeechTransport(target, authenticator, secure=secure))

    @classmethod
    def via_service_account(
        cls, credentials_file: str | Path, endpoint: str = DEFAULT_ENDPOINT
    ) -> "SpeechToText":
        from speech_client.adapters.auth import ServiceAccountAuthenticator

        return cls.with_authenticator(ServiceAccountAuthenticator.from_file(credentials_file), endpoint)

    @classmethod
    def via_api_key(cls, api_key: str, endpoint: str = DEFAULT_ENDPOINT) -> "SpeechToText":
        from speech_client.adapters.auth import ApiKeyAuthenticator

        return cls.with_authenticator(ApiKeyAuthenticator(api_key), endpoint)

    @classmethod
    def via_third_party_authenticator(
        cls, authenticator: AuthenticatorPort, endpoint: str = DEFAULT_ENDPOINT
    ) -> "SpeechToText":
        return cls.with_authenticator(authenticator, endpoint)

    @classmethod
    def via_token(cls, token_type: str, token: str, endpoint: str = DEFAULT_ENDPOINT) -> "SpeechToText":
        from speech_client.adapters.auth import TokenAuthenticator

        return cls.with_authenticator(TokenAuthenticator(token_type, token), endpoint)

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    async def recognize(self, config: RecognitionConfig, audio: bytes) -> cloud_speech.RecognizeResponse:
        logger.debug("Recognize: %d bytes of audio", len(audio))
        return await self._transport.recognize(build_recognize_request(config, audio))

    async def streaming_recognize(
        self, config: StreamingRecognitionConfig, audio: AsyncIterable[bytes]
    ) -> StreamingSession:
        """Open a streaming session fed by ``audio``.

        Iterate the returned session for server responses. The outbound side
        closes when ``audio`` is exhausted; ``session.dispose()`` stops it early.
        """
        session = StreamingSession(
            self._transport,
            build_streaming_config_request(config),
            audio,
            build_audio_request,
            on_closed=self._sessions.discard,
        )
        self._sessions.add(session)
        try:
            await session.open()
        except BaseException:
            self._sessions.discard(session)
            raise
        return session

    async def long_running_recognize(self, config: RecognitionConfig, audio_uri: str) -> OperationHandle:
        handle = await self._transport.long_running_recognize(build_long_running_request(config, audio_uri))
        logger.info("Submitted long-running recognition %s for %s", handle.name, audio_uri)
        return handle

    def create_poller(
        self, poll_interval: float = DEFAULT_POLL_INTERVAL, deadline: float | None = None
    ) -> OperationPoller:
        return OperationPoller(self._transport, self._decode, poll_interval=poll_interval, deadline=deadline)

    async def wait_for_operation(
        self,
        handle: OperationHandle,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        deadline: float | None = None,
    ) -> LongRunningResult:
        return await self.create_poller(poll_interval, deadline).poll(handle)

    async def polling_long_running_recognize(
        self,
        config: RecognitionConfig,
        audio_uri: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        deadline: float | None = None,
    ) -> LongRunningResult:
        handle = await self.long_running_recognize(config, audio_uri)
        return await self.wait_for_operation(handle, poll_interval, deadline)

    def dispose(self) -> None:
        for session in list(self._sessions):
            session.dispose()

    async def close(self) -> None:
        self.dispose()
        await self._transport.close()

    async def __aenter__(self) -> "SpeechToText":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
