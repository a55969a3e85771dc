import configparser
import logging
from pathlib import Path
from typing import Optional

from .errors import ConfigError
from .logger import setup_logger

_logger = setup_logger()

DEFAULT_TIMEOUT = 900


def parse_log_level(value: str) -> str:
    """Normalize a level name ("debug" -> "DEBUG"), rejecting unknown ones."""
    level = (value or "").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown log level '{value}'")
    return level


class Config:
    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".config" / "winchoco"
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_path = self.config_dir / "winchoco.conf"

        # Default values
        self.choco_path: Optional[str] = None
        self.timeout: int = DEFAULT_TIMEOUT
        self.source: Optional[str] = None
        self.options: Optional[str] = None
        self.log_level: str = "INFO"

        self.load()

    def load(self) -> None:
        parser = configparser.ConfigParser()
        if not self.config_path.exists():
            _logger.warning(f"Config file {self.config_path} not found. Creating default config.")
            self._write_default_config()

        parser.read(self.config_path)

        # [general] - empty strings mean "not set"
        self.choco_path = parser.get("general", "choco_path", fallback="") or None
        try:
            self.timeout = parser.getint("general", "timeout", fallback=DEFAULT_TIMEOUT)
        except ValueError as e:
            raise ConfigError(f"timeout must be an integer: {e}") from e
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        self.source = parser.get("general", "source", fallback="") or None
        self.options = parser.get("general", "options", fallback="") or None

        # [logging]
        if parser.has_section("logging"):
            self.log_level = parse_log_level(parser.get("logging", "level", fallback=self.log_level))

    def _write_default_config(self) -> None:
        parser = configparser.ConfigParser()
        parser["general"] = {
            "choco_path": self.choco_path or "",
            "timeout": str(self.timeout),
            "source": self.source or "",
            "options": self.options or "",
        }
        parser["logging"] = {
            "level": self.log_level,
        }
        with self.config_path.open("w") as f:
            parser.write(f)
        _logger.info(f"Default config written to {self.config_path}")
