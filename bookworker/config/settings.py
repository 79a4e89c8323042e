from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "bookworker"
    db_username: str = "bookworker"
    db_password: str = "secret"

    target_language: str = "es"
    max_concurrent_entries: int = 8
    download_timeout_seconds: int = 60
    conversion_timeout_seconds: int = 600
    ebook_convert_path: str = "ebook-convert"
    temp_dir: str | None = None
    whole_book_translation: bool = False
    cache_max_age_days: int = 7
    image_jpeg_quality: int = 75

    translation_timeout_seconds: int = 60
    google_translate_url: str = "https://translate.googleapis.com/translate_a/single"
    deepl_api_key: str = ""
    deepl_api_url: str = "https://api-free.deepl.com/v2/translate"

    openai_api_key: str = ""
    openai_model_name: str = "gpt-4o-mini"
    openai_timeout_seconds: int = 30

    summary_provider: str = "openai"
