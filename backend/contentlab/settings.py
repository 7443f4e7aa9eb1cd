from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        extra="ignore",
    )

    app_name: str = "contentlab"
    environment: str = Field(default="local", validation_alias=AliasChoices("ENVIRONMENT", "CONTENTLAB_ENVIRONMENT"))
    database_url: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/contentlab",
        validation_alias=AliasChoices("DATABASE_URL", "CONTENTLAB_DATABASE_URL"),
    )
    youtube_api_key: str | None = Field(default=None, validation_alias=AliasChoices("YOUTUBE_API_KEY", "CONTENTLAB_YOUTUBE_API_KEY"))
    storage_path: str = Field(default="./storage", validation_alias=AliasChoices("STORAGE_PATH", "CONTENTLAB_STORAGE_PATH"))
    redis_url: str = Field(default="redis://redis:6379/0", validation_alias=AliasChoices("REDIS_URL", "CONTENTLAB_REDIS_URL"))
    celery_enabled: bool = Field(default=True, validation_alias=AliasChoices("CELERY_ENABLED", "CONTENTLAB_CELERY_ENABLED"))
    scheduler_enabled: bool = Field(default=True, validation_alias=AliasChoices("SCHEDULER_ENABLED", "CONTENTLAB_SCHEDULER_ENABLED"))
    watchdog_enabled: bool = Field(default=True, validation_alias=AliasChoices("WATCHDOG_ENABLED", "CONTENTLAB_WATCHDOG_ENABLED"))
    watchdog_interval_minutes: int = Field(default=5, validation_alias=AliasChoices("WATCHDOG_INTERVAL_MINUTES", "CONTENTLAB_WATCHDOG_INTERVAL_MINUTES"))
    stuck_processing_minutes: int = Field(default=90, validation_alias=AliasChoices("STUCK_PROCESSING_MINUTES", "CONTENTLAB_STUCK_PROCESSING_MINUTES"))
    image_generation_concurrency: int = Field(default=3, validation_alias=AliasChoices("IMAGE_GENERATION_CONCURRENCY", "CONTENTLAB_IMAGE_GENERATION_CONCURRENCY"))
    narration_timeout_sec: int = Field(default=600, validation_alias=AliasChoices("NARRATION_TIMEOUT_SEC", "CONTENTLAB_NARRATION_TIMEOUT_SEC"))
    composition_timeout_sec: int = Field(default=1800, validation_alias=AliasChoices("COMPOSITION_TIMEOUT_SEC", "CONTENTLAB_COMPOSITION_TIMEOUT_SEC"))
    ffmpeg_path: str = Field(default="ffmpeg", validation_alias=AliasChoices("FFMPEG_PATH", "CONTENTLAB_FFMPEG_PATH"))
    ffprobe_path: str = Field(default="ffprobe", validation_alias=AliasChoices("FFPROBE_PATH", "CONTENTLAB_FFPROBE_PATH"))
    tts_voice_id: str | None = Field(default=None, validation_alias=AliasChoices("TTS_VOICE_ID", "ELEVENLABS_VOICE_ID", "CONTENTLAB_TTS_VOICE_ID"))
    serialize_project_runs: bool = Field(default=False, validation_alias=AliasChoices("SERIALIZE_PROJECT_RUNS", "CONTENTLAB_SERIALIZE_PROJECT_RUNS"))
    project_lock_wait_timeout_sec: int = Field(default=1200, validation_alias=AliasChoices("PROJECT_LOCK_WAIT_TIMEOUT_SEC", "CONTENTLAB_PROJECT_LOCK_WAIT_TIMEOUT_SEC"))
    redis_semaphore_ttl_sec: int = Field(default=7200, validation_alias=AliasChoices("REDIS_SEMAPHORE_TTL_SEC", "CONTENTLAB_REDIS_SEMAPHORE_TTL_SEC"))
    expose_stage_errors: bool = Field(default=True, validation_alias=AliasChoices("EXPOSE_STAGE_ERRORS", "CONTENTLAB_EXPOSE_STAGE_ERRORS"))

    @property
    def async_database_url(self) -> str:
        if self.database_url.startswith("postgresql+"):
            return self.database_url
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if self.database_url.startswith("sqlite:///"):
            return self.database_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return self.database_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
