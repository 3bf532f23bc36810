from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List


class Settings(BaseSettings):
    # === DATABASE ===
    DATABASE_URL: str = Field(default="sqlite:///./identity.db", description="SQLAlchemy database URL")

    # === JWT AUTH ===
    SECRET_KEY: str = Field(default="change-me", description="Secret key for JWT token signing")
    ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60, description="Session token lifetime in minutes")

    # === OTP ===
    OTP_LENGTH: int = Field(default=6, description="Number of digits in a generated OTP")
    OTP_EXPIRE_MINUTES: int = Field(default=5, description="OTP validity window in minutes")
    RESET_TOKEN_EXPIRE_MINUTES: int = Field(default=15, description="Password reset exchange token lifetime")
    EXPOSE_OTP_IN_RESPONSE: bool = Field(default=True, description="Echo generated OTPs back to the caller")

    # === EMAIL ===
    EMAIL_HOST: str = Field(default="", description="SMTP host")
    EMAIL_PORT: int = Field(default=587, description="SMTP port")
    EMAIL_HOST_USER: str = Field(default="", description="SMTP username")
    EMAIL_HOST_PASSWORD: str = Field(default="", description="SMTP password")
    EMAIL_FROM: str = Field(default="", description="Email sender address")
    MAIL_FROM_NAME: str = Field(default="Identity API", description="Sender display name")

    # === HTTP ===
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed by the CORS middleware",
    )

    # === DEBUG MODE ===
    DEBUG: bool = Field(default=False, description="Debug mode")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


# Create settings instance
settings = Settings()
