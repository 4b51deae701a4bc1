"""Helpers shared by CLI command modules."""

from typing import Any

import typer
from pydantic import ValidationError

from wordloop.application.config import AppConfig, resolve_config


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """
    Resolve config with CLI flags layered on top; unset flags (None) are ignored.

    Invalid settings are reported and end the command with exit code 1.
    """
    try:
        return resolve_config({k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        typer.secho("Invalid configuration:", fg="red", err=True)
        for err in e.errors():
            field = ".".join(str(part) for part in err["loc"]) or "config"
            typer.secho(f"  {field}: {err['msg']}", fg="red", err=True)
        raise typer.Exit(1)
