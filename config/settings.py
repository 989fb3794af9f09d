from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Key/value store (defaults match docker-compose.yml for local dev)
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: float = 5.0
    KV_BACKEND: str = "redis"  # "redis" | "memory" (tests, local demo)

    # JWT — no default, MUST be set in .env
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 30
    JWT_REFRESH_EXPIRE_DAYS: int = 7

    # Journal
    DEFAULT_BANKROLL_CENTS: int = 1_000_000  # 10,000.00 starting bank
    LINK_CODE_TTL_SECONDS: int = 300

    # Telegram
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    TELEGRAM_WEBHOOK_SECRET: str = ""  # empty = header check disabled

    # AI assistant (chat flow)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    HTTP_TIMEOUT_SECONDS: float = 20.0

    # App
    APP_NAME: str = "Bet Journal"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev


settings = Settings()
