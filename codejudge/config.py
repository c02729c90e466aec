import logging
import tempfile
from logging.config import dictConfig
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: str = "local"

    # API SERVER
    API_SERVER_PORT: int = 8000
    API_SERVER_HOST: str = "0.0.0.0"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Sandbox
    SANDBOX_ROOT: str = tempfile.gettempdir()
    EXECUTION_TIMEOUT_SECONDS: float = 10
    EXECUTION_MEMORY_LIMIT_MB: int = 128
    COMPILE_MEMORY_LIMIT_MB: int = 1024
    MAX_CONCURRENT_SANDBOXES: int = 8
    MAX_OUTPUT_BYTES: int = 1024 * 1024
    SANDBOX_MAX_PROCESSES: int = 64

    # Toolchains
    PYTHON_BIN: str = "python3"
    NODE_BIN: str = "node"
    JAVAC_BIN: str = "javac"
    JAVA_BIN: str = "java"
    CXX_BIN: str = "g++"

    # Output comparison
    FLOAT_REL_TOL: float = 1e-9
    FLOAT_ABS_TOL: float = 1e-9

    # Submission store
    SUBMISSION_STORE: str = "memory"
    DATABASE_URL: str = "sqlite:///./codejudge.db"

    # Advisory text generation
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o"
    ADVISORY_TIMEOUT_SECONDS: float = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def API_BASE_URL(self) -> str:
        return f"http://{self.API_SERVER_HOST}:{self.API_SERVER_PORT}"

    @property
    def USE_SQL_STORE(self) -> bool:
        return self.SUBMISSION_STORE.lower() == "sql"


Config = Settings()

# Ensure logs directory exists
log_dir = Path(Config.LOG_FILE).parent
log_dir.mkdir(parents=True, exist_ok=True)


def configure_logging():
    """Configure logging for the application."""
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s - %(lineno)d - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": Config.LOG_LEVEL,
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "detailed",
                "filename": Config.LOG_FILE,
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5,
                "level": Config.LOG_LEVEL,
            },
        },
        "loggers": {
            "app": {
                "handlers": ["console", "file"],
                "level": Config.LOG_LEVEL,
                "propagate": False,
            },
            "sandbox": {
                "handlers": ["console", "file"],
                "level": Config.LOG_LEVEL,
                "propagate": False,
            },
            "grading": {
                "handlers": ["console", "file"],
                "level": Config.LOG_LEVEL,
                "propagate": False,
            },
            "db": {
                "handlers": ["console", "file"],
                "level": Config.LOG_LEVEL,
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["console", "file"],
            "level": Config.LOG_LEVEL,
        },
    }
    dictConfig(log_config)
    return logging.getLogger("app")


# Initialize logger
logger = configure_logging()
