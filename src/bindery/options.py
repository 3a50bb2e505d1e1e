"""Process-wide diagnostic and composition options.

Loaded from ``BINDERY_``-prefixed environment variables, e.g.
``BINDERY_CONNECTION_LOG_ENABLED=true``. The log flags are pure observability
and never change wiring behaviour.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["BinderyOptions"]


class BinderyOptions(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BINDERY_", extra="ignore")

    collect_module_log_enabled: bool = False
    registration_log_enabled: bool = False
    connection_log_enabled: bool = False

    # Extra module-name prefixes skipped by the type scan
    excluded_modules: list[str] = Field(default_factory=list)

    channel_backend: Literal["list", "weak"] = "list"
