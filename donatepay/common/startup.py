"""Startup-time helpers for safe config logging."""

from donatepay.common.config import CommonSettings
from donatepay.common.logging import logger

SECRET_MARKERS = ("key", "secret", "password", "token")


def redacted_config(config: CommonSettings, fields: list[str]) -> dict[str, object]:
    """Selected settings with secret-like fields masked.

    Empty secrets are reported as `<unset>` so a missing credential is visible
    in the startup line without leaking a configured one.
    """

    values = config.model_dump(include=set(fields))
    shown: dict[str, object] = {}
    for name in fields:
        value = values.get(name)
        if any(marker in name for marker in SECRET_MARKERS):
            value = "<redacted>" if value else "<unset>"
        shown[name] = value
    return shown


def log_startup_config(config: CommonSettings, fields: list[str]) -> None:
    """Log selected startup config keys for quick troubleshooting."""

    shown = {"service": config.service_name, **redacted_config(config, fields)}
    logger.info("startup_config=%s", shown)
