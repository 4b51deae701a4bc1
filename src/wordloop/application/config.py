from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from wordloop.domain.constants import (
    DEFAULT_PASS_THRESHOLD,
    FLUSH_RETRIES,
    REQUEST_TIMEOUT,
    RETRY_DELAY,
    TOKEN_MAX_SKEW_SEC,
    TOKEN_SAFETY_BUFFER_SEC,
)


class AppConfig(BaseSettings):
    """
    Configuration model for wordloop.
    Supports loading from:
    1. Environment variables (WORDLOOP_*)
    2. Config file (~/.config/wordloop/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="WORDLOOP_",
        extra="ignore",
    )

    # Word store
    backend: Literal["sheet", "file"] = "file"
    store_url: str | None = None
    words_file: Path = Field(default_factory=lambda: Path.home() / ".config/wordloop/words.yaml")
    request_timeout: float = REQUEST_TIMEOUT

    # Identity
    token_file: Path = Field(default_factory=lambda: Path.home() / ".config/wordloop/token.json")
    allowed_emails: Annotated[list[str], NoDecode] = Field(default_factory=list)
    token_safety_buffer: int = TOKEN_SAFETY_BUFFER_SEC
    token_max_skew: int = TOKEN_MAX_SKEW_SEC

    # Scheduling
    pass_threshold: int = Field(default=DEFAULT_PASS_THRESHOLD, ge=1, le=5)

    # Flush
    flush_retries: int = Field(default=FLUSH_RETRIES, ge=0)
    retry_delay: float = Field(default=RETRY_DELAY, ge=0)

    # Where reviews that could not be saved are dumped
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/wordloop/logs")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Looked up at call time so a patched HOME is honoured.
        toml_file = Path.home() / ".config/wordloop/config.toml"

        # CLI overrides first, then env, then the file.
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("allowed_emails", mode="before")
    @classmethod
    def split_emails(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [e.strip() for e in v.split(",") if e.strip()]
        return v

    @field_validator("words_file", "token_file", "log_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/wordloop/config.toml (if exists)
    3. Environment variables (WORDLOOP_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
