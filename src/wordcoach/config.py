"""Configuration settings for wordcoach."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
MEDIA_DIR = DATA_DIR / "media"
PRONUNCIATIONS_DIR = MEDIA_DIR / "pronunciations"

CONTENT_PROVIDERS = ("wordnet", "gemini")


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        MEDIA_DIR,
        PRONUNCIATIONS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    media_dir: Path = MEDIA_DIR
    pronunciations_dir: Path = PRONUNCIATIONS_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///wordcoach.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class ContentSettings:
    """Word enrichment settings."""
    provider: str = os.getenv("CONTENT_PROVIDER", "wordnet").lower()
    source_language: str = os.getenv("SOURCE_LANGUAGE", "en")
    target_language: str = os.getenv("TARGET_LANGUAGE", "es")
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")


@dataclass
class LearningSettings:
    """Learning process settings."""
    session_size: int = int(os.getenv("SESSION_SIZE", "10"))
    # Shortest typed answer accepted as a partial translation match
    min_partial_match_length: int = int(os.getenv("MIN_PARTIAL_MATCH_LENGTH", "3"))
    multiple_choice_options: int = int(os.getenv("MULTIPLE_CHOICE_OPTIONS", "4"))


@dataclass
class SpeechSettings:
    """Text-to-speech settings."""
    language: str = os.getenv("SPEECH_LANGUAGE", "en")
    tld: str = os.getenv("SPEECH_TLD", "us")
    slow: bool = os.getenv("SPEECH_SLOW", "false").lower() == "true"


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    port: int = int(os.getenv("METRICS_PORT", "0"))  # 0 disables the exporter


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_content_settings() -> ContentSettings:
    """Get content settings."""
    return ContentSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_speech_settings() -> SpeechSettings:
    """Get speech settings."""
    return SpeechSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    content: ContentSettings = field(default_factory=get_content_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    speech: SpeechSettings = field(default_factory=get_speech_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.content.provider not in CONTENT_PROVIDERS:
            raise ValueError(f"CONTENT_PROVIDER must be one of {', '.join(CONTENT_PROVIDERS)}")

        if self.content.provider == "gemini" and not self.content.gemini_api_key:
            raise ValueError("GEMINI_API_KEY is required when CONTENT_PROVIDER is gemini")

        if self.learning.session_size < 1:
            raise ValueError("SESSION_SIZE must be positive")

        if self.learning.min_partial_match_length < 1:
            raise ValueError("MIN_PARTIAL_MATCH_LENGTH must be positive")

        if self.learning.multiple_choice_options < 2:
            raise ValueError("MULTIPLE_CHOICE_OPTIONS must be at least 2")

        if self.monitoring.port < 0:
            raise ValueError("METRICS_PORT cannot be negative")


# Create global settings instance
settings = Settings()
settings.validate()
