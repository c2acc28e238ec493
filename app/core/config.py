"""
Application configuration.
All settings are loaded from environment variables.
Use env.example as a reference for required variables.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    IMPORTANT: Credentials have no defaults - they MUST be set in .env file.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # Comma-separated. Empty = default list in app.main.
    cors_origins: str = ""

    # ===========================================
    # DATABASE
    # ===========================================
    database_url: str  # Required, no default

    # ===========================================
    # REDIS (circuit breaker state, readiness probe)
    # ===========================================
    redis_url: str = "redis://localhost:6379/0"

    # ===========================================
    # AUTH (JWT issued by the identity service)
    # ===========================================
    jwt_secret_key: str  # Required, no default
    jwt_algorithm: str = "HS256"

    # ===========================================
    # GEMINI CHAT
    # ===========================================
    gemini_api_key: str = ""  # Get from https://aistudio.google.com/apikey
    gemini_api_endpoint: str = "https://generativelanguage.googleapis.com"
    gemini_chat_model: str = "gemini-2.0-flash"
    gemini_chat_temperature: float = 0.7
    gemini_chat_max_output_tokens: int = 1024
    gemini_timeout: float = 60.0
    chat_rate_limit_backoff_seconds: float = 30.0

    # ===========================================
    # CLOUDINARY (KOL video storage)
    # ===========================================
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_api_url: str = "https://api.cloudinary.com/v1_1"
    cloudinary_timeout: float = 300.0
    kol_video_folder: str = "kol-videos"
    kol_video_max_upload_mb: int = 100
    kol_video_allowed_extensions: str = ".mp4,.mov,.avi,.mkv,.webm"

    # ===========================================
    # PAYOS (payment links)
    # ===========================================
    payos_client_id: str = ""
    payos_api_key: str = ""
    payos_checksum_key: str = ""
    payos_api_url: str = "https://api-merchant.payos.vn"
    payos_return_url: str = "http://localhost:3000/payment/success"
    payos_cancel_url: str = "http://localhost:3000/payment/cancel"
    payos_timeout: float = 30.0

    # ===========================================
    # CIRCUIT BREAKER
    # ===========================================
    cb_failure_threshold: int = 5
    cb_open_seconds: int = 30
    cb_storage: str = "redis"  # redis | memory

    # ===========================================
    # LOGGING
    # ===========================================
    request_id_header: str = "X-Request-Id"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("kol_video_allowed_extensions")
    @classmethod
    def parse_extensions(cls, v: str) -> str:
        """Validate extensions format."""
        return v.lower().strip()

    @field_validator("cb_storage")
    @classmethod
    def validate_cb_storage(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("redis", "memory"):
            raise ValueError("cb_storage must be 'redis' or 'memory'")
        return v

    @property
    def allowed_video_extensions_set(self) -> set[str]:
        """Get allowed video extensions as a set."""
        return {ext.strip() for ext in self.kol_video_allowed_extensions.split(",") if ext.strip()}

    @property
    def kol_video_max_upload_bytes(self) -> int:
        return self.kol_video_max_upload_mb * 1024 * 1024

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
