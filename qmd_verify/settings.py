"""
Initializes the Dynaconf settings for the qmd_verify component.
This module is the single source of truth for all configuration.
"""

from pathlib import Path
from dynaconf import Dynaconf, Validator

PACKAGE_ROOT = Path(__file__).parent

DEFAULT_HOST = "http://localhost:8080"


def load_settings() -> Dynaconf:
    """Builds the settings object, read once per process."""
    return Dynaconf(
        root_path=PACKAGE_ROOT,
        settings_files=["settings.toml"],
        envvar_prefix="QMDVERIFY",
        environments=False,
        load_dotenv=False,
        validators=[
            Validator("HOST", default=DEFAULT_HOST),
            Validator("REQUEST_TIMEOUT", default=60),
            Validator("POLLING.FAST_INTERVAL", default=0.5),
            Validator("POLLING.SLOW_INTERVAL", default=1.0),
            Validator("POLLING.SLOW_AFTER", default=10),
            Validator("POLLING.MAX_DURATION", default=60),
            Validator("POLLING.SHOW_PROGRESS", default=True),
            Validator("LOGGING.LEVEL", default="WARNING"),
        ],
    )


def server_host(settings: Dynaconf) -> str:
    """The server address with any trailing slash stripped."""
    host = str(settings.host or DEFAULT_HOST)
    return host.rstrip("/")
