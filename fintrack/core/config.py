from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # App settings
    PROJECT_NAME: str = "FinTrack"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # DynamoDB
    DYNAMO_REGION: str = Field(default="ap-south-1")
    DYNAMO_TABLE_PREFIX: str = Field(default="fintrack")

    # JWT Authentication
    JWT_SECRET: str = Field(default="change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # Preferences
    DEFAULT_CURRENCY: str = "INR"
    TRIAL_DAYS: int = 7

    # Razorpay
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = None
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"

    # Google Sheets
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    GOOGLE_REDIRECT_URI: str = "http://localhost:8000/api/sheets/callback"
    FRONTEND_URL: str = "http://localhost:3000"

    # Outbound HTTP timeout in seconds
    HTTP_TIMEOUT: float = 10.0

    # Health score weights, keyed by HealthScoreWeights field name
    HEALTH_SCORE_WEIGHTS: Dict[str, float] = Field(default_factory=dict)


settings = Settings()
