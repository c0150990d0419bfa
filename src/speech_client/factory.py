import logging

from speech_client.client import SpeechToText
from speech_client.config import SpeechClientConfig
from speech_client.domain.errors import AuthenticationError
from speech_client.domain.recognition_config import (
    AudioEncoding,
    RecognitionConfig,
    StreamingRecognitionConfig,
)
from speech_client.ports.authenticator import AuthenticatorPort

logger = logging.getLogger(__name__)


def create_authenticator(config: SpeechClientConfig) -> AuthenticatorPort:
    if config.auth_mode == "api-key":
        from speech_client.adapters.auth import ApiKeyAuthenticator

        return ApiKeyAuthenticator(config.read_secret(config.api_key_file))

    if config.auth_mode == "token":
        from speech_client.adapters.auth import TokenAuthenticator

        return TokenAuthenticator(config.token_type, config.read_secret(config.token_file))

    from speech_client.adapters.auth import ServiceAccountAuthenticator

    if not config.service_account_file:
        raise AuthenticationError("SPEECH_CLIENT_SERVICE_ACCOUNT_FILE is not set")
    return ServiceAccountAuthenticator.from_file(config.service_account_file)


def create_client(config: SpeechClientConfig) -> SpeechToText:
    authenticator = create_authenticator(config)
    logger.debug("Using %s authentication against %s", config.auth_mode, config.target)
    return SpeechToText.with_authenticator(authenticator, config.target, secure=config.secure)


def create_recognition_config(
    config: SpeechClientConfig, sample_rate: int | None = None
) -> RecognitionConfig:
    return RecognitionConfig(
        encoding=AudioEncoding[config.encoding],
        sample_rate_hertz=sample_rate or config.sample_rate,
        language_code=config.language_code,
        enable_word_time_offsets=config.enable_word_time_offsets,
        enable_automatic_punctuation=config.enable_automatic_punctuation,
    )


def create_streaming_config(
    config: SpeechClientConfig, sample_rate: int | None = None
) -> StreamingRecognitionConfig:
    return StreamingRecognitionConfig(
        config=create_recognition_config(config, sample_rate),
        interim_results=config.interim_results,
    )
