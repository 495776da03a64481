from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./carelearn.db",
        env="DATABASE_URL",
    )

    # Auth tokens
    jwt_secret_key: str = Field(default="change-me-in-production", env="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", env="JWT_ALGORITHM")
    token_expire_seconds: int = Field(default=86400, env="TOKEN_EXPIRE_SECONDS")
    session_cookie_name: str = Field(default="carelearn_session", env="SESSION_COOKIE_NAME")

    # Page routing
    login_path: str = Field(default="/login", env="LOGIN_PATH")
    admin_home_path: str = Field(default="/admin", env="ADMIN_HOME_PATH")
    patient_home_path: str = Field(default="/patient", env="PATIENT_HOME_PATH")

    # HTTP
    cors_origins: list[str] = Field(default=["*"], env="CORS_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # Startup
    seed_demo_data: bool = Field(default=False, env="SEED_DEMO_DATA")
    demo_admin_email: str = Field(default="admin@carelearn.app", env="DEMO_ADMIN_EMAIL")
    demo_admin_password: str = Field(default="ChangeMe!2024", env="DEMO_ADMIN_PASSWORD")

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
