from dataclasses import dataclass, field

from speech_client.domain.errors import OffsetOverflowError

NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True, order=True)
class AudioOffset:
    """Position in the audio stream, measured from its start.

    ``seconds`` and ``nanos`` are unbounded Python ints, so nothing is lost
    when copying the service's 64-bit fields. Use ``to_native`` when a fixed
    width integer is required.
    """

    seconds: int = 0
    nanos: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanos < NANOS_PER_SECOND:
            raise ValueError(f"nanos must be in [0, {NANOS_PER_SECOND}), got {self.nanos}")

    @property
    def total_seconds(self) -> float:
        return self.seconds + self.nanos / NANOS_PER_SECOND

    @property
    def total_nanos(self) -> int:
        return self.seconds * NANOS_PER_SECOND + self.nanos

    def to_native(self, bits: int = 64) -> tuple[int, int]:
        """Return ``(seconds, nanos)`` checked against a signed ``bits`` width.

        Raises:
            OffsetOverflowError: If seconds does not fit
        """
        limit = 1 << (bits - 1)
        if not -limit <= self.seconds < limit:
            raise OffsetOverflowError(
                f"Offset of {self.seconds}s does not fit in a signed {bits}-bit integer"
            )
        return self.seconds, self.nanos


ResultEndOffset = AudioOffset


@dataclass(frozen=True)
class WordInfo:
    word: str
    start_offset: AudioOffset = field(default_factory=AudioOffset)
    end_offset: AudioOffset = field(default_factory=AudioOffset)
    confidence: float = 0.0
    speaker_tag: int = 0


@dataclass(frozen=True)
class Transcript:
    transcript: str
    confidence: float
    words: tuple[WordInfo, ...] = ()


@dataclass(frozen=True)
class TranscriptionResult:
    alternatives: tuple[Transcript, ...]
    result_end_offset: ResultEndOffset
    language_code: str = ""
    channel_tag: int = 0

    @property
    def best(self) -> Transcript | None:
        return self.alternatives[0] if self.alternatives else None


@dataclass(frozen=True)
class OperationError:
    """Error status reported by a finished operation, passed through untouched."""

    code: int
    message: str
    details: tuple = ()


@dataclass(frozen=True)
class OperationHandle:
    """Snapshot of a server-side operation as returned by one fetch.

    ``response`` holds the encoded result payload once ``done`` is true.
    """

    name: str
    done: bool = False
    error: OperationError | None = None
    response: bytes | None = None
    metadata: bytes | None = None


@dataclass(frozen=True)
class LongRunningResult:
    operation: OperationHandle
    results: tuple[TranscriptionResult, ...] = ()
    error: OperationError | None = None

    @property
    def transcript(self) -> str:
        return " ".join(r.best.transcript.strip() for r in self.results if r.best)
