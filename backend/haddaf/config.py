from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "haddaf-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Haddaf")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/haddaf_dev")
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_uploads: str = os.getenv("S3_BUCKET_UPLOADS", "haddaf-uploads-dev")

    # Tokens are minted by the identity provider; we only verify them
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    jwt_algorithm: str = os.getenv("JWT_ALG", "HS256")

    # Uploads
    max_video_seconds: float = float(os.getenv("MAX_VIDEO_SECONDS", "30"))

    # Rating transactions
    rating_max_attempts: int = int(os.getenv("RATING_MAX_ATTEMPTS", "5"))
    rating_retry_base_delay: float = float(os.getenv("RATING_RETRY_BASE_DELAY", "0.05"))

    # Live board polling
    feed_poll_seconds: float = float(os.getenv("FEED_POLL_SECONDS", "2"))

settings = Settings()
