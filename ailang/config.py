from pathlib import Path
from typing import Any, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AilConfig(BaseSettings):
    """
    AI-Lang Configuration.
    Priority: Environment Variables (AILANG_*) > .env File > Defaults.
    """

    # --- Execution ---
    MAX_STEPS: int = Field(
        default=1_000_000, ge=0,
        description="Statements/loop iterations a run may execute before it is stopped (0 disables)"
    )
    RANDOM_SEED: Optional[int] = Field(default=None, description="Seed for RND()")
    DEBUG: bool = Field(default=False, description="Enable debug logging")

    # --- Tooling ---
    HISTORY_FILE: str = Field(
        default=str(Path.home() / ".ailang_history"), description="REPL history file"
    )
    SOURCE_SUFFIX: str = Field(default=".ail", description="Suffix of AI-Lang source files")
    DEFAULT_SOURCE: str = Field(
        default="code.ail", description="Program run when no file is given"
    )

    model_config = SettingsConfigDict(
        env_prefix="AILANG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value with precedence."""
        return getattr(self, key, default)


# Singleton instance
settings = AilConfig()
config = settings
