from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class SpeechClientConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SPEECH_CLIENT_")

    endpoint: str = "speech.googleapis.com"
    port: int = 443
    secure: bool = True

    auth_mode: Literal["service-account", "api-key", "token"] = "service-account"
    service_account_file: str = ""
    api_key_file: str = ""
    token_file: str = ""
    token_type: str = "Bearer"

    language_code: str = "en-US"
    encoding: str = "LINEAR16"
    sample_rate: int = 16000
    chunk_duration_ms: int = 100
    interim_results: bool = True
    enable_word_time_offsets: bool = False
    enable_automatic_punctuation: bool = True

    poll_interval_seconds: float = 1.0
    poll_deadline_seconds: float | None = None

    log_file: str = ""

    @property
    def target(self) -> str:
        return f"{self.endpoint}:{self.port}"

    def read_secret(self, path: str) -> str:
        if not path:
            return ""
        try:
            with open(path) as f:
                return f.read().strip()
        except FileNotFoundError:
            return ""
