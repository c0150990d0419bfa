"""Conversions between wire records and domain values."""

import logging

from google.cloud.speech_v1 import types as cloud_speech
from google.longrunning import operations_pb2
from google.protobuf import message

from speech_client.domain.errors import DecodeError
from speech_client.domain.results import (
    AudioOffset,
    OperationError,
    OperationHandle,
    Transcript,
    TranscriptionResult,
    WordInfo,
)

logger = logging.getLogger(__name__)

_LONG_RUNNING_RESPONSE = cloud_speech.LongRunningRecognizeResponse.pb()
_RESPONSE_TYPE_SUFFIX = "/" + _LONG_RUNNING_RESPONSE.DESCRIPTOR.full_name


def operation_handle_from_pb(operation: operations_pb2.Operation) -> OperationHandle:
    result = operation.WhichOneof("result")
    error = None
    response = None
    if result == "error":
        error = OperationError(
            code=operation.error.code,
            message=operation.error.message,
            details=tuple(operation.error.details),
        )
    elif result == "response":
        if not operation.response.type_url.endswith(_RESPONSE_TYPE_SUFFIX):
            raise DecodeError(
                f"Operation {operation.name} carries unexpected response type {operation.response.type_url!r}"
            )
        response = operation.response.value
    metadata = operation.metadata.value if operation.HasField("metadata") else None
    return OperationHandle(
        name=operation.name,
        done=operation.done,
        error=error,
        response=response,
        metadata=metadata,
    )


def decode_results(payload: bytes) -> list[TranscriptionResult]:
    """Decode an encoded LongRunningRecognizeResponse into transcription results.

    Raises:
        DecodeError: If the payload is not a valid response
    """
    try:
        response = _LONG_RUNNING_RESPONSE.FromString(payload)
    except message.DecodeError as exc:
        raise DecodeError(f"Cannot parse long-running response ({len(payload)} bytes)") from exc

    try:
        results = [_transcription_result(result) for result in response.results]
    except ValueError as exc:
        raise DecodeError(f"Malformed long-running response: {exc}") from exc
    logger.debug("Decoded %d transcription results", len(results))
    return results


def _transcription_result(result) -> TranscriptionResult:
    return TranscriptionResult(
        alternatives=tuple(
            Transcript(
                transcript=alternative.transcript,
                confidence=alternative.confidence,
                words=tuple(_word_info(word) for word in alternative.words),
            )
            for alternative in result.alternatives
        ),
        result_end_offset=_offset(result.result_end_time),
        language_code=result.language_code,
        channel_tag=result.channel_tag,
    )


def _word_info(word) -> WordInfo:
    return WordInfo(
        word=word.word,
        start_offset=_offset(word.start_time),
        end_offset=_offset(word.end_time),
        confidence=word.confidence,
        speaker_tag=word.speaker_tag,
    )


def _offset(duration) -> AudioOffset:
    return AudioOffset(seconds=int(duration.seconds), nanos=int(duration.nanos))
