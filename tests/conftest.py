import asyncio
import time
from collections.abc import AsyncIterable, AsyncIterator, Callable

import numpy as np
import pytest
from google.cloud.speech_v1 import types as cloud_speech

from speech_client.client import SpeechToText
from speech_client.domain.recognition_config import RecognitionConfig, StreamingRecognitionConfig
from speech_client.domain.results import OperationError, OperationHandle


SAMPLE_RATE = 16000
FRAME_DURATION_MS = 100
FRAME_SIZE = int(SAMPLE_RATE * FRAME_DURATION_MS / 1000)


def generate_silence(duration_ms: int = FRAME_DURATION_MS, sample_rate: int = SAMPLE_RATE) -> bytes:
    num_samples = int(sample_rate * duration_ms / 1000)
    return np.zeros(num_samples, dtype=np.int16).tobytes()


def generate_sine_wave(
    frequency: float = 440.0,
    duration_ms: int = FRAME_DURATION_MS,
    amplitude: float = 0.8,
    sample_rate: int = SAMPLE_RATE,
) -> bytes:
    num_samples = int(sample_rate * duration_ms / 1000)
    t = np.arange(num_samples) / sample_rate
    signal = np.sin(2 * np.pi * frequency * t) * amplitude
    return (signal * 32767).astype(np.int16).tobytes()


def split_into_frames(pcm_data: bytes, frame_size: int = FRAME_SIZE) -> list[bytes]:
    bytes_per_frame = frame_size * 2
    return [pcm_data[i : i + bytes_per_frame] for i in range(0, len(pcm_data), bytes_per_frame)]


def distinct_frames(count: int) -> list[bytes]:
    return [generate_sine_wave(frequency=200.0 + 50 * i) for i in range(count)]


async def audio_from(frames: list[bytes]) -> AsyncIterator[bytes]:
    for frame in frames:
        yield frame
        await asyncio.sleep(0)


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(0.001)


def make_result_payload(results: list[dict]) -> bytes:
    """Encode a LongRunningRecognizeResponse.

    Each dict has ``alternatives`` (list of (transcript, confidence, words)
    where words is a list of (word, start_s, start_ns, end_s, end_ns)),
    ``end`` (seconds, nanos) and ``language``.
    """
    response = cloud_speech.LongRunningRecognizeResponse.pb()()
    for entry in results:
        result = response.results.add()
        for transcript, confidence, words in entry["alternatives"]:
            alternative = result.alternatives.add()
            alternative.transcript = transcript
            alternative.confidence = confidence
            for word, start_s, start_ns, end_s, end_ns in words:
                info = alternative.words.add()
                info.word = word
                info.start_time.seconds = start_s
                info.start_time.nanos = start_ns
                info.end_time.seconds = end_s
                info.end_time.nanos = end_ns
        result.result_end_time.seconds, result.result_end_time.nanos = entry["end"]
        result.language_code = entry.get("language", "en-us")
    return response.SerializeToString()


TWO_RESULTS = [
    {
        "alternatives": [
            ("hello world", 0.92, [("hello", 0, 100_000_000, 0, 500_000_000), ("world", 0, 600_000_000, 1, 0)]),
        ],
        "end": (1, 200_000_000),
    },
    {
        "alternatives": [("how are you", 0.87, [])],
        "end": (3, 123_456_789),
        "language": "en-gb",
    },
]


class FakeSpeechTransport:
    def __init__(self) -> None:
        self.recognize_requests: list[cloud_speech.RecognizeRequest] = []
        self.recognize_response = cloud_speech.RecognizeResponse(
            results=[
                cloud_speech.SpeechRecognitionResult(
                    alternatives=[cloud_speech.SpeechRecognitionAlternative(transcript="canned", confidence=0.9)]
                )
            ]
        )

        self.sent_frames: list[cloud_speech.StreamingRecognizeRequest] = []
        self.close_signals = 0
        self.stream_responses: list[cloud_speech.StreamingRecognizeResponse] = []
        self.stream_error: Exception | None = None
        self.open_error: Exception | None = None
        self.streams_opened = 0

        self.submitted: list[cloud_speech.LongRunningRecognizeRequest] = []
        self.submit_handle = OperationHandle(name="operations/1234")
        self.submit_error: Exception | None = None
        self.operations: list[OperationHandle | Exception] = []
        self.fetches: list[tuple[str, float]] = []

        self.closed = False

    async def recognize(self, request: cloud_speech.RecognizeRequest) -> cloud_speech.RecognizeResponse:
        self.recognize_requests.append(request)
        return self.recognize_response

    async def streaming_recognize(
        self, requests: AsyncIterable[cloud_speech.StreamingRecognizeRequest]
    ) -> AsyncIterator[cloud_speech.StreamingRecognizeResponse]:
        if self.open_error is not None:
            raise self.open_error
        self.streams_opened += 1
        consumer = asyncio.create_task(self._consume(requests))
        return self._respond(consumer)

    async def long_running_recognize(self, request: cloud_speech.LongRunningRecognizeRequest) -> OperationHandle:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(request)
        return self.submit_handle

    async def get_operation(self, name: str) -> OperationHandle:
        self.fetches.append((name, time.monotonic()))
        item = self.operations.pop(0) if len(self.operations) > 1 else self.operations[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True

    def queue_operations(self, not_done: int, payload: bytes | None = None, error: OperationError | None = None) -> None:
        name = self.submit_handle.name
        self.operations = [OperationHandle(name=name) for _ in range(not_done)]
        self.operations.append(OperationHandle(name=name, done=True, response=payload, error=error))

    async def _consume(self, requests: AsyncIterable[cloud_speech.StreamingRecognizeRequest]) -> None:
        async for frame in requests:
            self.sent_frames.append(frame)
        self.close_signals += 1

    async def _respond(self, consumer: asyncio.Task) -> AsyncIterator[cloud_speech.StreamingRecognizeResponse]:
        await consumer
        for response in self.stream_responses:
            yield response
        if self.stream_error is not None:
            raise self.stream_error


def streaming_response(text: str, is_final: bool = True) -> cloud_speech.StreamingRecognizeResponse:
    return cloud_speech.StreamingRecognizeResponse(
        results=[
            cloud_speech.StreamingRecognitionResult(
                alternatives=[cloud_speech.SpeechRecognitionAlternative(transcript=text)],
                is_final=is_final,
            )
        ]
    )


class FakeAuthenticator:
    def __init__(self, token: str = "test-token") -> None:
        self.token = token
        self.calls = 0

    async def metadata(self) -> list[tuple[str, str]]:
        self.calls += 1
        return [("authorization", f"Bearer {self.token}")]


@pytest.fixture
def fake_transport():
    return FakeSpeechTransport()


@pytest.fixture
def client(fake_transport):
    return SpeechToText(fake_transport)


@pytest.fixture
def recognition_config():
    return RecognitionConfig(language_code="en-US", sample_rate_hertz=SAMPLE_RATE)


@pytest.fixture
def streaming_config(recognition_config):
    return StreamingRecognitionConfig(config=recognition_config, interim_results=True)
