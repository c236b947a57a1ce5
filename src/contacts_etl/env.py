"""Environment file loading for local runs."""
from __future__ import annotations

import os
from pathlib import Path

ENV_FILE_VARIABLE = "CONTACTS_ENV_FILE"


def load_env(dotenv_path: str | Path | None = None, override: bool = False) -> bool:
    """Load ``.env`` (or ``dotenv_path``), then the file named by CONTACTS_ENV_FILE.

    Returns True when at least one file set variables.
    """
    try:
        from dotenv import load_dotenv
    except ModuleNotFoundError as exc:  # pragma: no cover - dependency missing
        raise RuntimeError(
            "python-dotenv is not installed. Run `pip install -e '.[test]'` "
            "before running contacts-etl commands."
        ) from exc

    loaded = load_dotenv(dotenv_path=dotenv_path, override=override)
    overlay = os.getenv(ENV_FILE_VARIABLE)
    if overlay and Path(overlay).exists():
        loaded = load_dotenv(dotenv_path=overlay, override=True) or loaded
    return loaded


__all__ = ["ENV_FILE_VARIABLE", "load_env"]
