"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "CartGenie API"
    app_version: str = "1.0.0"
    debug: bool = True

    # Security
    secret_key: str = "your-secret-key-change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    admin_usernames: list[str] = []

    # Storage
    storage_type: str = "mongo"  # mongo, local
    local_storage_path: str = "./data"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "cartgenie"

    # LLM Provider settings
    llm_provider: str = "gemini"  # "gemini" or "openai"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_timeout: float = 60.0

    # Legacy key (still accepted)
    gemini_api_key: Optional[str] = None

    # Google sign-in
    google_client_id: Optional[str] = None
    google_tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo"

    # OCR
    tesseract_cmd: Optional[str] = None  # falls back to tesseract on PATH
    receipt_max_upload_bytes: int = 10 * 1024 * 1024
    blood_test_max_upload_bytes: int = 20 * 1024 * 1024
    blood_test_min_text_length: int = 20
    pdf_dpi: int = 300

    # CORS
    cors_origins: list[str] = ["*"]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/cartgenie.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses
    log_llm_calls: bool = True  # Log all LLM calls with token usage

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def resolved_llm_api_key(self) -> Optional[str]:
        return self.llm_api_key or self.gemini_api_key


settings = Settings()
