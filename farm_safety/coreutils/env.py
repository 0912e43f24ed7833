from dotenv import load_dotenv
import os

load_dotenv()  # take environment variables from .env


def env_get(key: str, default: str | None = None) -> str | None:
    """Get environment variable or return default."""
    return os.getenv(key, default)


def env_get_int(key: str, default: int) -> int:
    """Get an integer environment variable or return default."""
    value = env_get(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}")


def env_get_float(key: str, default: float) -> float:
    value = env_get(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {value!r}")


def env_get_list(key: str, default: str = "") -> list[str]:
    """Get a comma separated environment variable as a list of stripped items."""
    value = env_get(key, default) or ""
    return [item.strip() for item in value.split(",") if item.strip()]
