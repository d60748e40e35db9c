"""
Configuration management using Pydantic models.

Settings come from environment variables, optionally layered over a YAML
file with the same keys in snake_case. The resulting ``AppConfig`` is built
once at startup and passed to every component.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .domain.exceptions import ConfigurationError, InvalidTimeError
from .domain.models import WorkHours, parse_clock_time

# Environment variable -> config key
ENV_MAPPING: Dict[str, str] = {
    "PORT": "port",
    "TZ": "timezone",
    "GOOGLE_CALENDAR_ID": "calendar_id",
    "WORK_START": "work_start",
    "WORK_END": "work_end",
    "BUFFER_MIN": "buffer_minutes",
    "CORS_ORIGINS": "cors_origins",
    "LOG_LEVEL": "log_level",
}

CREDENTIAL_ENV_MAPPING: Dict[str, str] = {
    "GOOGLE_SERVICE_ACCOUNT_BASE64": "service_account_base64",
    "GOOGLE_SERVICE_ACCOUNT_JSON": "service_account_json",
    "GOOGLE_CLIENT_ID": "client_id",
    "GOOGLE_CLIENT_SECRET": "client_secret",
    "GOOGLE_REFRESH_TOKEN": "refresh_token",
}


class CredentialsConfig(BaseModel):
    """Google credential material. Exactly one scheme should be filled in."""
    service_account_base64: Optional[str] = None
    service_account_json: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None

    def configured_schemes(self) -> List[str]:
        """Names of the credential schemes that have any value set."""
        schemes: List[str] = []
        if self.service_account_base64:
            schemes.append("service_account_base64")
        if self.service_account_json:
            schemes.append("service_account_json")
        if self.client_id or self.client_secret or self.refresh_token:
            schemes.append("oauth_refresh_token")
        return schemes


class AppConfig(BaseModel):
    """Application configuration."""
    port: int = 8080
    timezone: str = "America/Los_Angeles"
    calendar_id: str = "primary"
    work_start: str = "09:00"
    work_end: str = "17:00"
    buffer_minutes: int = 30
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        """Ensure the listen port is a valid TCP port."""
        if not 0 < value < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("work_start", "work_end")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        """Validate HH:mm wall-clock strings."""
        try:
            parse_clock_time(value)
        except InvalidTimeError as exc:
            raise ValueError(str(exc)) from exc
        return value.strip()

    @field_validator("buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        """Buffer may be zero but never negative."""
        if value < 0:
            raise ValueError(f"buffer_minutes must not be negative, got {value}")
        return value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value: Any) -> Any:
        """Accept a comma separated string as well as a list."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def validate_hours_order(self) -> "AppConfig":
        """Ensure the configured window opens before it closes."""
        if parse_clock_time(self.work_end) <= parse_clock_time(self.work_start):
            raise ValueError("work_end must be later than work_start")
        return self

    def get_work_hours(self) -> WorkHours:
        """Build the work-window resolver for this configuration."""
        return WorkHours(
            start_time=parse_clock_time(self.work_start),
            end_time=parse_clock_time(self.work_end),
            timezone=self.timezone,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AppConfig":
        """
        Build a config from plain data, converting validation failures.

        Raises:
            ConfigurationError: If the data does not describe a valid config
        """
        try:
            return cls(**data)
        except PydanticValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    @classmethod
    def read_yaml(cls, config_path: Path) -> Dict[str, Any]:
        """
        Read raw configuration data from a YAML file.

        Raises:
            ConfigurationError: If the file is missing or not a YAML mapping
        """
        if not config_path.exists():
            raise ConfigurationError(
                f"Config file not found: {config_path}\n"
                f"See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a mapping at the root level.")

        return data

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            ConfigurationError: If the file is missing or the config is invalid
        """
        return cls.from_mapping(cls.read_yaml(config_path))

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        config_path: Optional[Path] = None,
    ) -> "AppConfig":
        """
        Load configuration from environment variables.

        Args:
            environ: Environment mapping, defaults to ``os.environ``
            config_path: Optional YAML file used as the base layer

        Returns:
            AppConfig instance

        Raises:
            ConfigurationError: If the resulting config is invalid
        """
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = cls.read_yaml(config_path) if config_path else {}

        for env_name, key in ENV_MAPPING.items():
            value = env.get(env_name)
            if value not in (None, ""):
                data[key] = value

        credentials = dict(data.get("credentials") or {})
        for env_name, key in CREDENTIAL_ENV_MAPPING.items():
            value = env.get(env_name)
            if value not in (None, ""):
                credentials[key] = value
        data["credentials"] = credentials

        return cls.from_mapping(data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
