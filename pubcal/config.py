"""Configuration for pubcal."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

from pubcal.constants import DEFAULT_PRODID, DEFAULT_TIMEZONE


class PubcalConfig(BaseModel):
    """Pubcal configuration with Pydantic validation."""

    # Storage paths
    calendar_dir: Path = Field(default=Path("data/calendars"))
    record_dir: Path = Field(default=Path("data/records"))
    log_dir: Path = Field(default=Path("logs"))

    # File naming
    log_filename: str = Field(default="pubcal.log")

    # Calendar files
    default_timezone: str = Field(default=DEFAULT_TIMEZONE)
    prodid: str = Field(default=DEFAULT_PRODID)

    # Search defaults
    search_page_size: int = Field(default=10, ge=1)

    @field_validator("default_timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        """Reject timezone names zoneinfo cannot resolve."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        """Default timezone as a tzinfo object."""
        return ZoneInfo(self.default_timezone)

    @classmethod
    def from_env(cls) -> "PubcalConfig":
        """Load configuration from environment variables and .env file."""
        load_dotenv(find_dotenv(usecwd=True))

        config_dict = {}

        # Storage paths
        if "PUBCAL_DATA_DIR" in os.environ:
            data_dir = Path(os.environ["PUBCAL_DATA_DIR"])
            config_dict["calendar_dir"] = data_dir / "calendars"
            config_dict["record_dir"] = data_dir / "records"
        if "PUBCAL_CALENDAR_DIR" in os.environ:
            config_dict["calendar_dir"] = Path(os.environ["PUBCAL_CALENDAR_DIR"])
        if "PUBCAL_RECORD_DIR" in os.environ:
            config_dict["record_dir"] = Path(os.environ["PUBCAL_RECORD_DIR"])
        if "PUBCAL_LOG_DIR" in os.environ:
            config_dict["log_dir"] = Path(os.environ["PUBCAL_LOG_DIR"])

        # File naming
        if "PUBCAL_LOG_FILENAME" in os.environ:
            config_dict["log_filename"] = os.environ["PUBCAL_LOG_FILENAME"]

        # Calendar files
        if "PUBCAL_DEFAULT_TIMEZONE" in os.environ:
            config_dict["default_timezone"] = os.environ["PUBCAL_DEFAULT_TIMEZONE"]
        if "PUBCAL_PRODID" in os.environ:
            config_dict["prodid"] = os.environ["PUBCAL_PRODID"]

        # Search defaults
        if "PUBCAL_SEARCH_PAGE_SIZE" in os.environ:
            try:
                config_dict["search_page_size"] = int(
                    os.environ["PUBCAL_SEARCH_PAGE_SIZE"]
                )
            except ValueError:
                pass  # Keep default if invalid

        return cls(**config_dict)
