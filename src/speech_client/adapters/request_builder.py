from google.cloud.speech_v1 import types as cloud_speech

from speech_client.domain.recognition_config import (
    RecognitionConfig,
    SpeakerDiarizationConfig,
    StreamingRecognitionConfig,
)


def build_recognition_config(config: RecognitionConfig) -> cloud_speech.RecognitionConfig:
    request_config = cloud_speech.RecognitionConfig(
        encoding=cloud_speech.RecognitionConfig.AudioEncoding[config.encoding.value],
        sample_rate_hertz=config.sample_rate_hertz,
        audio_channel_count=config.audio_channel_count,
        enable_separate_recognition_per_channel=config.enable_separate_recognition_per_channel,
        language_code=config.language_code,
        alternative_language_codes=list(config.alternative_language_codes),
        max_alternatives=config.max_alternatives,
        profanity_filter=config.profanity_filter,
        speech_contexts=[
            cloud_speech.SpeechContext(phrases=list(context.phrases), boost=context.boost)
            for context in config.speech_contexts
        ],
        enable_word_time_offsets=config.enable_word_time_offsets,
        enable_word_confidence=config.enable_word_confidence,
        enable_automatic_punctuation=config.enable_automatic_punctuation,
        use_enhanced=config.use_enhanced,
    )
    if config.model:
        request_config.model = config.model
    if config.diarization_config is not None:
        request_config.diarization_config = _build_diarization(config.diarization_config)
    return request_config


def _build_diarization(diarization: SpeakerDiarizationConfig) -> cloud_speech.SpeakerDiarizationConfig:
    return cloud_speech.SpeakerDiarizationConfig(
        enable_speaker_diarization=diarization.enable_speaker_diarization,
        min_speaker_count=diarization.min_speaker_count,
        max_speaker_count=diarization.max_speaker_count,
    )


def build_recognize_request(config: RecognitionConfig, audio: bytes) -> cloud_speech.RecognizeRequest:
    return cloud_speech.RecognizeRequest(
        config=build_recognition_config(config),
        audio=cloud_speech.RecognitionAudio(content=audio),
    )


def build_long_running_request(
    config: RecognitionConfig, audio_uri: str
) -> cloud_speech.LongRunningRecognizeRequest:
    return cloud_speech.LongRunningRecognizeRequest(
        config=build_recognition_config(config),
        audio=cloud_speech.RecognitionAudio(uri=audio_uri),
    )


def build_streaming_config_request(
    config: StreamingRecognitionConfig,
) -> cloud_speech.StreamingRecognizeRequest:
    return cloud_speech.StreamingRecognizeRequest(
        streaming_config=cloud_speech.StreamingRecognitionConfig(
            config=build_recognition_config(config.config),
            interim_results=config.interim_results,
            single_utterance=config.single_utterance,
        )
    )


def build_audio_request(chunk: bytes) -> cloud_speech.StreamingRecognizeRequest:
    return cloud_speech.StreamingRecognizeRequest(audio_content=chunk)
