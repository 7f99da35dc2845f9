import json
import os
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from dotenv import load_dotenv


SECTION_SEPARATOR = ":"
ENV_SECTION_SEPARATOR = "__"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigurationError(ValueError):
    """Raised when startup configuration is missing or unsafe."""


def _flatten(values: Mapping[str, Any], prefix: str = "") -> Iterator[tuple]:
    for key, value in values.items():
        path = f"{prefix}{SECTION_SEPARATOR}{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            yield from _flatten(value, path)
        elif isinstance(value, list):
            for index, item in enumerate(value):
                item_path = f"{path}{SECTION_SEPARATOR}{index}"
                if isinstance(item, Mapping):
                    yield from _flatten(item, item_path)
                else:
                    yield item_path, item
        else:
            yield path, value


class Configuration:
    """Read-only view over hierarchical configuration keys.

    Keys are ``:``-separated paths such as ``CorsPolicy:Origins`` and are
    matched case-insensitively. Instances are built once at startup and
    passed explicitly to each setup function.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = {}
        for key, value in (values or {}).items():
            self._values[str(key).lower()] = value

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Configuration":
        return cls(dict(_flatten(values)))

    @classmethod
    def from_env(
        cls,
        prefix: str = "",
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Union[str, Path]] = None,
    ) -> "Configuration":
        """Build configuration from environment variables.

        ``CorsPolicy__Origins`` maps to ``CorsPolicy:Origins``. A ``.env``
        file is loaded first when reading the process environment.
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        values: Dict[str, str] = {}
        for name, value in environ.items():
            if prefix:
                if not name.startswith(prefix):
                    continue
                name = name[len(prefix):]
            if not name:
                continue
            values[name.replace(ENV_SECTION_SEPARATOR, SECTION_SEPARATOR)] = value
        return cls(values)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "Configuration":
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON configuration in {path}: {e}") from e
        if not isinstance(document, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
        return cls.from_mapping(document)

    @classmethod
    def merged(cls, *sources: "Configuration") -> "Configuration":
        """Combine sources; later sources override earlier ones."""
        values: Dict[str, Any] = {}
        for source in sources:
            values.update(source._values)
        return cls(values)

    def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._values.get(key.lower())
        if value is None:
            return default
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get_value(key)
        if value is None or not value.strip():
            return default
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"Configuration value {key}={value!r} is not a boolean")

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get_value(key)
        if value is None or not value.strip():
            return default
        try:
            return int(value.strip())
        except ValueError as e:
            raise ConfigurationError(f"Configuration value {key}={value!r} is not an integer") from e

    def get_section(self, prefix: str) -> "Configuration":
        head = prefix.lower().rstrip(SECTION_SEPARATOR) + SECTION_SEPARATOR
        return Configuration({
            key[len(head):]: value
            for key, value in self._values.items()
            if key.startswith(head)
        })

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._values

    def __len__(self) -> int:
        return len(self._values)
