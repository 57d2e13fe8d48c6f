import os
from typing import Optional

from dotenv import load_dotenv

# Load .env file
load_dotenv('.env')


def get_env(name: str, default: Optional[str] = None) -> str:
    val = os.getenv(name, default)
    if val is None:
        raise RuntimeError(f"Missing required env var: {name}")
    return val


def _postgres_url_from_parts() -> str:
    """Build a PostgreSQL URL from the discrete DB_* variables used by the deployment manifests."""
    host = get_env("DB_HOST", "localhost")
    port = get_env("DB_PORT", "5432")
    user = get_env("DB_USER", "postgres")
    password = get_env("DB_PASSWORD", "password")
    name = get_env("DB_NAME", "lugx_gaming")
    sslmode = get_env("DB_SSLMODE", "disable")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


class Settings:
    def __init__(self):
        self.APP_NAME: str = get_env("APP_NAME", "order-service")
        self.APP_VERSION: str = get_env("APP_VERSION", "1.0.0")
        self.PORT: int = int(get_env("PORT", "8081"))
        self.LOG_LEVEL: str = get_env("LOG_LEVEL", "INFO").upper()

        # App settings - need to be defined first for database switching
        self.DEBUG: bool = get_env("DEBUG", "False").lower() == "true"
        self.TESTING: bool = get_env("TESTING", "False").lower() == "true"

        # Database configuration - switch based on environment
        if self.TESTING:
            # In-memory SQLite for testing
            self.DATABASE_URL: str = "sqlite:///:memory:"
            self.SQLALCHEMY_ECHO: bool = False
        elif self.DEBUG:
            # File-based SQLite for development
            self.DATABASE_URL: str = get_env("DATABASE_URL", "sqlite:///./orders.sqlite3")
            self.SQLALCHEMY_ECHO: bool = True
        else:
            # PostgreSQL for production
            self.DATABASE_URL: str = os.getenv("POSTGRES_DATABASE_URL") or _postgres_url_from_parts()
            self.SQLALCHEMY_ECHO: bool = False

        # Pagination
        self.MAX_PAGE_SIZE: int = int(get_env("MAX_PAGE_SIZE", "100"))
        self.DEFAULT_PAGE_SIZE: int = int(get_env("DEFAULT_PAGE_SIZE", "10"))

        # When true, a stored order that cannot be rendered fails the whole listing
        self.STRICT_ROW_DECODE: bool = get_env("STRICT_ROW_DECODE", "False").lower() == "true"

        self.CORS_ALLOW_ORIGINS: list[str] = [
            origin.strip() for origin in get_env("CORS_ALLOW_ORIGINS", "*").split(",") if origin.strip()
        ]


settings = Settings()
