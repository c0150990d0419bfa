"""Caller-facing recognition settings.

These are plain immutable values. Turning them into wire requests is the job
of ``speech_client.adapters.request_builder``.
"""

from dataclasses import dataclass, field
from enum import Enum


class AudioEncoding(Enum):
    ENCODING_UNSPECIFIED = "ENCODING_UNSPECIFIED"
    LINEAR16 = "LINEAR16"
    FLAC = "FLAC"
    MULAW = "MULAW"
    AMR = "AMR"
    AMR_WB = "AMR_WB"
    OGG_OPUS = "OGG_OPUS"
    SPEEX_WITH_HEADER_BYTE = "SPEEX_WITH_HEADER_BYTE"
    MP3 = "MP3"
    WEBM_OPUS = "WEBM_OPUS"


@dataclass(frozen=True)
class SpeechContext:
    """Phrase hints that bias recognition towards the given words."""

    phrases: tuple[str, ...] = ()
    boost: float = 0.0


@dataclass(frozen=True)
class SpeakerDiarizationConfig:
    enable_speaker_diarization: bool = True
    min_speaker_count: int = 2
    max_speaker_count: int = 6


@dataclass(frozen=True)
class RecognitionConfig:
    """How the service should decode and recognize the audio.

    Attributes:
        encoding: Encoding of the audio payload
        sample_rate_hertz: Sample rate of the audio, 0 lets the service read it
            from the header for FLAC and WAV
        language_code: BCP-47 language tag, e.g. "en-US"
        max_alternatives: Upper bound on alternatives returned per result
        speech_contexts: Phrase hints
        enable_word_time_offsets: Return start/end offsets per word
        enable_word_confidence: Return a confidence value per word
        diarization_config: Speaker diarization, off when None
        model: Service model name, e.g. "latest_long"; empty uses the default
    """

    encoding: AudioEncoding = AudioEncoding.LINEAR16
    sample_rate_hertz: int = 16000
    language_code: str = "en-US"
    audio_channel_count: int = 1
    enable_separate_recognition_per_channel: bool = False
    alternative_language_codes: tuple[str, ...] = ()
    max_alternatives: int = 1
    profanity_filter: bool = False
    speech_contexts: tuple[SpeechContext, ...] = field(default_factory=tuple)
    enable_word_time_offsets: bool = False
    enable_word_confidence: bool = False
    enable_automatic_punctuation: bool = False
    diarization_config: SpeakerDiarizationConfig | None = None
    model: str = ""
    use_enhanced: bool = False


@dataclass(frozen=True)
class StreamingRecognitionConfig:
    config: RecognitionConfig = field(default_factory=RecognitionConfig)
    interim_results: bool = False
    single_utterance: bool = False
