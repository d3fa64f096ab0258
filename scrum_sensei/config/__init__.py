from typing import Any

from .logging import setup_logging
from .settings import Settings, get_settings


def env(key: str, default: Any = None) -> Any:
    """Look up a setting by name, falling back to raw environment extras.

    Declared ``Settings`` fields win (they are validated and converted);
    anything else is read from the extras pydantic-settings keeps because of
    ``extra="allow"``.

    Args:
        key: Setting or environment variable name (case insensitive)
        default: Value returned when the key is unknown

    Returns
    -------
        The configured value or ``default``
    """
    settings = get_settings()

    value = getattr(settings, key.upper(), None)
    if value is not None:
        return value

    extras = settings.model_extra or {}
    for candidate in (key.lower(), key.upper()):
        if extras.get(candidate) is not None:
            return extras[candidate]
    return default


__all__ = ["Settings", "env", "get_settings", "setup_logging"]
