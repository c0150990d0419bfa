from speech_client.client import SpeechToText
from speech_client.domain.errors import (
    AuthenticationError,
    DecodeError,
    OffsetOverflowError,
    PollCancelledError,
    PollDeadlineExceeded,
    RejectedRequestError,
    SpeechClientError,
    StreamFailureError,
)
from speech_client.domain.recognition_config import (
    AudioEncoding,
    RecognitionConfig,
    SpeakerDiarizationConfig,
    SpeechContext,
    StreamingRecognitionConfig,
)
from speech_client.domain.results import (
    AudioOffset,
    LongRunningResult,
    OperationError,
    OperationHandle,
    ResultEndOffset,
    Transcript,
    TranscriptionResult,
    WordInfo,
)
from speech_client.domain.streaming import StreamingSession

__all__ = [
    "AudioEncoding",
    "AudioOffset",
    "AuthenticationError",
    "DecodeError",
    "LongRunningResult",
    "OffsetOverflowError",
    "OperationError",
    "OperationHandle",
    "PollCancelledError",
    "PollDeadlineExceeded",
    "RecognitionConfig",
    "RejectedRequestError",
    "ResultEndOffset",
    "SpeakerDiarizationConfig",
    "SpeechClientError",
    "SpeechContext",
    "SpeechToText",
    "StreamFailureError",
    "StreamingRecognitionConfig",
    "StreamingSession",
    "Transcript",
    "TranscriptionResult",
    "WordInfo",
]
