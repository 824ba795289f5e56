"""
Runtime settings, read from the environment.

    SHAMIRFIELD_HOME         share store directory   (default ~/.shamirfield)
    SHAMIRFIELD_BITS         field width in bits     (default 256)
    SHAMIRFIELD_FIXED_PRIME  use the published prime (default true)
    SHAMIRFIELD_LOG_LEVEL    logging level name      (default WARNING)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional


DEFAULT_STORE = Path.home() / ".shamirfield"
DEFAULT_BITS = 256

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class Settings:
    store_dir: Path = field(default_factory=lambda: DEFAULT_STORE)
    bit_width: int = DEFAULT_BITS
    use_fixed_prime: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Raises:
            ValueError: If a variable is set to an unusable value
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        home = env.get("SHAMIRFIELD_HOME")
        store_dir = Path(home) if home else defaults.store_dir

        bits = env.get("SHAMIRFIELD_BITS")
        try:
            bit_width = int(bits) if bits else defaults.bit_width
        except ValueError:
            raise ValueError(
                f"SHAMIRFIELD_BITS must be an integer, got {bits!r}"
            ) from None

        fixed = env.get("SHAMIRFIELD_FIXED_PRIME")
        if fixed:
            use_fixed_prime = _parse_bool("SHAMIRFIELD_FIXED_PRIME", fixed)
        else:
            use_fixed_prime = defaults.use_fixed_prime

        log_level = env.get("SHAMIRFIELD_LOG_LEVEL", defaults.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"Unknown SHAMIRFIELD_LOG_LEVEL: {log_level!r}")

        return cls(
            store_dir=store_dir,
            bit_width=bit_width,
            use_fixed_prime=use_fixed_prime,
            log_level=log_level,
        )


def configure_logging(level: str) -> None:
    """Configure the root logger once for command-line use."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
