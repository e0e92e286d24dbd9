import os
import logging
from dotenv import load_dotenv

load_dotenv()

class Config:
    # Database Configuration
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASS = os.getenv("DB_PASS", "postgres")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "rent_billing")
    DB_ECHO = os.getenv("DB_ECHO", "false").lower() in ("1", "true", "yes")

    @property
    def DATABASE_URL(self):
        # Prefer DATABASE_URL env var if set (for SQLite support)
        url = os.getenv("DATABASE_URL")
        if url:
            return url

        # Build PostgreSQL URL
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # "development" attaches error details to API error responses
    APP_ENV = os.getenv("APP_ENV", "production").lower()
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # HTTP server
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "8000"))

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

config = Config()

# Log configuration on startup
logging.info(f"Billing API configured for '{config.APP_ENV}' environment")
logging.info(f"Database: {config.DATABASE_URL.split('@')[1] if '@' in config.DATABASE_URL else 'SQLite'}")
