import os
import warnings
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv


def load_local_env():
    if os.getenv("FLOWTRACK_HOSTED"):
        return

    dotenv_path = Path(__file__).resolve().parents[3] / ".env"
    if dotenv_path.exists():
        load_dotenv(dotenv_path, override=False)
    else:
        warnings.warn(
            f".env file not found at {dotenv_path}. "
            "Environment variables must be set via system environment or the hosting runtime.",
            UserWarning
        )


def env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to a default when
    it is unset. Raises ValueError naming the variable if it can't be parsed."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer.") from exc


def env_float(name: str, default: float) -> float:
    value: Optional[str] = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a number.") from exc
