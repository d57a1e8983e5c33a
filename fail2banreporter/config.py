import logging
import pathlib

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .ban_classifier import BanSelection
from .formatters.base import OutputType
from .resources import DEFAULT_CONFIG_PATH


class Settings(BaseSettings):
    """Everything a single report run needs, resolved once at startup.

    Values passed to the constructor (the command line) win over
    ``F2B_REPORT_*`` environment variables.
    """

    config_file: pathlib.Path = pathlib.Path(DEFAULT_CONFIG_PATH)
    db_file: pathlib.Path | None = None
    output_file: pathlib.Path | None = None
    output_type: OutputType = OutputType.ABUSEIPDB_CSV
    ban_selection: BanSelection = BanSelection.ACTIVE
    only_jails: str | None = None
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(env_prefix="F2B_REPORT_")

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str):
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level '{v}'")
        return level

    @property
    def selected_jails(self) -> list[str] | None:
        if self.only_jails is None:
            return None
        return [name.strip() for name in self.only_jails.split(",") if name.strip()]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings
