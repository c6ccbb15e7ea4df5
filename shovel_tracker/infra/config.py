"""
Configuration management using Pydantic Settings.

Architecture Decision: Why pydantic-settings?
- Type-safe configuration with validation
- Supports multiple sources (YAML, env vars, defaults)
- Easy to test with different configurations
"""

import os
from pathlib import Path
from typing import Literal, Optional
import yaml

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackerPreferences(BaseModel):
    """
    Presentation preferences, read from settings.yaml.
    """
    report_title: str = Field(default="Shovel Project Time Tracker")
    report_subtitle: str = Field(default="Time & Travel Report")
    recent_entries_limit: int = Field(default=10, ge=1, description="Entries shown in the recent list")


class Settings(BaseSettings):
    """
    Application settings with multiple sources:
    1. Default values (hardcoded)
    2. YAML config file (preferences)
    3. Environment variables (highest priority)
    """
    model_config = SettingsConfigDict(
        env_prefix='SHOVEL_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True
    )

    # Application paths
    app_name: str = "ShovelTracker"
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    # Collection store
    store_backend: Literal["sqlite", "upstash", "memory"] = "sqlite"
    database_url: Optional[str] = None
    upstash_redis_rest_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SHOVEL_UPSTASH_REDIS_REST_URL", "UPSTASH_REDIS_REST_URL")
    )
    upstash_redis_rest_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SHOVEL_UPSTASH_REDIS_REST_TOKEN", "UPSTASH_REDIS_REST_TOKEN")
    )
    key_prefix: str = "shovel-"
    request_timeout: float = 10.0

    # Web server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    preferences: TrackerPreferences = TrackerPreferences()

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._init_paths()
        self._load_yaml_config()

    def _init_paths(self):
        """Initialize default paths based on OS"""
        if self.config_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.config'
            self.config_dir = base / self.app_name.lower()

        if self.data_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.local' / 'share'
            self.data_dir = base / self.app_name.lower()

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _load_yaml_config(self):
        """Load preferences from YAML file"""
        # First check in workspace config folder
        config_file = Path("config/settings.yaml")
        if not config_file.exists():
            config_file = self.config_dir / "settings.yaml"

        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
                if config_data:
                    self.preferences = TrackerPreferences(**config_data)

    def save_preferences(self):
        """Save current preferences to YAML file"""
        config_file = self.config_dir / "settings.yaml"
        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(self.preferences.model_dump(), f, default_flow_style=False)

    def get_db_url(self) -> str:
        """Get database URL, creating default if not set"""
        if self.database_url:
            return self.database_url

        db_path = self.data_dir / 'shovel.db'
        return f"sqlite+aiosqlite:///{db_path}"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
