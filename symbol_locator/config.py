"""Settings read from the environment (a .env file is loaded by the CLI)."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .transport import DEFAULT_TIMEOUT

MICROSOFT_SYMBOL_SERVER = "https://msdl.microsoft.com/download/symbols"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def default_cache_dir() -> str:
    """Default symbol cache directory."""
    # Windows default: %LOCALAPPDATA%\dbg\sym
    if os.name == "nt":
        local_app_data = os.environ.get("LOCALAPPDATA", "")
        if local_app_data:
            return os.path.join(local_app_data, "dbg", "sym")
    return str(Path.home() / ".symbols")


def default_symbol_path(cache_dir: str) -> str:
    return f"srv*{cache_dir}*{MICROSOFT_SYMBOL_SERVER}"


@dataclass
class SymbolSettings:
    symbol_path: str
    cache_dir: str
    timeout: int = DEFAULT_TIMEOUT
    try_all_candidates: bool = False
    verbose: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SymbolSettings":
        """
        Build settings from environment variables.

        SYMBOL_LOCATOR_PATH wins over _NT_SYMBOL_PATH; with neither set the
        Microsoft public server is used behind the local cache.
        """
        env = os.environ if environ is None else environ
        cache_dir = env.get("SYMBOL_LOCATOR_CACHE") or default_cache_dir()
        symbol_path = (env.get("SYMBOL_LOCATOR_PATH")
                       or env.get("_NT_SYMBOL_PATH")
                       or default_symbol_path(cache_dir))

        timeout = DEFAULT_TIMEOUT
        raw_timeout = env.get("SYMBOL_LOCATOR_TIMEOUT")
        if raw_timeout:
            try:
                timeout = max(1, int(raw_timeout))
            except ValueError:
                raise ValueError(f"SYMBOL_LOCATOR_TIMEOUT must be an integer, got {raw_timeout!r}")

        return cls(
            symbol_path=symbol_path,
            cache_dir=cache_dir,
            timeout=timeout,
            try_all_candidates=_flag(env.get("SYMBOL_LOCATOR_ALL_CANDIDATES")),
            verbose=_flag(env.get("SYMBOL_LOCATOR_VERBOSE")),
        )


def _flag(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in _TRUE_VALUES
