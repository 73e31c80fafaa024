from __future__ import annotations

import ipaddress
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from typing_extensions import Annotated

DEFAULT_ADMIN_PASSWORD = "change-me-now"

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def parse_networks(entries: Iterable[str]) -> List[IPNetwork]:
    """Turn CIDR ranges or bare addresses into networks; a bare address is a one-host network."""
    return [ipaddress.ip_network(entry, strict=False) for entry in entries]


class Settings(BaseSettings):
    """Runtime configuration, read from ``AGENDA_*`` variables or ``.env``."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="AGENDA_", case_sensitive=False)

    app_name: str = "Agenda"
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"

    sqlite_path: Path = Path("./data/agenda.db")

    secret_key: str = "change-me"
    session_cookie: str = "agenda_session"
    session_max_age: int = 60 * 60 * 24 * 7

    # Office calendar
    timezone: str = "Asia/Jakarta"

    # Bootstrap account, created when the user table is empty
    admin_email: str = "admin@example.com"
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    admin_name: str = "Administrator"

    itinerary_logo_path: Optional[Path] = None

    block_ips: Annotated[List[str], NoDecode] = Field(default_factory=list)
    behind_proxy: bool = False

    @field_validator("block_ips", mode="before")
    @classmethod
    def _comma_separated(cls, value):
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value or []

    @field_validator("block_ips")
    @classmethod
    def _parsable(cls, value: List[str]) -> List[str]:
        parse_networks(value)
        return value

    @computed_field
    @property
    def block_networks(self) -> List[IPNetwork]:
        return parse_networks(self.block_ips)

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.sqlite_path}"


settings = Settings()


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
