"""Configuration models for Sitesmith."""

from pydantic import BaseModel, Field, HttpUrl
from pathlib import Path
from typing import Optional
import yaml
import os
import stat


class LLMConfig(BaseModel):
    """Configuration for the LLM API used to generate pages."""

    endpoint: HttpUrl = Field(
        ...,
        description="LLM API endpoint URL (OpenAI compatible)"
    )

    api_key: str = Field(
        ...,
        description="API key for authentication"
    )

    model: str = Field(
        ...,
        description="Model identifier (e.g., 'gpt-4o')"
    )

    temperature: float = Field(
        default=0.5,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for page generation"
    )

    max_tokens: int = Field(
        default=4096,
        ge=256,
        description="Upper bound on generated tokens per page"
    )

    model_config = {"frozen": True}


class EditorConfig(BaseModel):
    """Configuration for the edit session and its recovery snapshots."""

    status_reset_delay: float = Field(
        default=3.0,
        ge=0.0,
        description="Seconds before a success/error save status reverts to idle"
    )

    recovery_key_chars: int = Field(
        default=50,
        ge=1,
        description="Leading characters of the baseline document hashed into the recovery key"
    )

    recovery_dir: str = Field(
        default="~/.cache/sitesmith/recovery",
        description="Directory holding recovery snapshots of unsaved edits"
    )

    recovery_quota_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Total bytes the recovery store may hold"
    )

    recovery_max_age_days: int = Field(
        default=7,
        ge=1,
        description="Snapshots older than this are removed on startup"
    )

    model_config = {"frozen": True}

    @property
    def recovery_path(self) -> Path:
        """Recovery directory with ~ expanded."""
        return Path(self.recovery_dir).expanduser()


class StorageConfig(BaseModel):
    """Configuration for where generated and edited pages are written."""

    output_dir: str = Field(
        default="gen_comp",
        description="Directory that holds generated pages"
    )

    base_url: str = Field(
        default="",
        description="Prefix applied to /uploads/ references when saving"
    )

    model_config = {"frozen": True}

    @property
    def output_path(self) -> Path:
        """Output directory with ~ expanded."""
        return Path(self.output_dir).expanduser()


class Config(BaseModel):
    """Root configuration for Sitesmith."""

    llm: Optional[LLMConfig] = Field(default=None, description="LLM API settings")
    editor: EditorConfig = Field(default_factory=EditorConfig, description="Editor settings")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Storage settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Validates file permissions before loading when the file holds an LLM
        section (it carries an API key). Raises PermissionError if such a file
        is group/world readable.

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            PermissionError: If file permissions are too open
            FileNotFoundError: If config file doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        if not path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Please create the file with the following format:\n\n"
                f"llm:\n"
                f"  endpoint: https://api.openai.com/v1\n"
                f"  api_key: YOUR_API_KEY_HERE\n"
                f"  model: gpt-4o\n\n"
                f"storage:\n"
                f"  output_dir: ~/sites\n"
            )

        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping: {path}")

        if data.get("llm"):
            mode = os.stat(path).st_mode
            if mode & (stat.S_IRWXG | stat.S_IRWXO):
                raise PermissionError(
                    f"Config file has overly permissive permissions: {oct(mode)}\n"
                    f"Run: chmod 600 {path}"
                )

        return cls(**data)

    model_config = {"frozen": True}
