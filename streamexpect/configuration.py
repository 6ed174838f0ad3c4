"""Defines a class representing `streamexpect` configuration."""
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, Union

import dpath
import yaml

from streamexpect.exceptions import ConfigurationParseError


DEFAULT_TIMEOUT = 1.0
"""Default time in seconds to wait for expectations."""

Override = Tuple[str, Any]
"""Type representing a single value override in a YAML config file.

First element is a path within the file, e.g.: `"wait.default-timeout"`.
Second element is the value to be inserted under the given path.
"""


@dataclass(frozen=True)
class Configuration:
    """Settings shared by expectations and waits."""

    default_timeout: float = DEFAULT_TIMEOUT
    """Timeout in seconds used by waits that don't specify one."""

    colorize: bool = False
    """If set, diffs in failure messages are colored with ANSI codes."""

    log_level: Optional[str] = None
    """Level name for console logging, e.g. `"DEBUG"`; `None` keeps the default."""


class _ConfigurationParser:
    """A class for reading configuration from a `dict` instance."""

    Doc = Union[Dict[str, Any], List[Any]]
    """Type for documents parsed by _ConfigurationParser."""

    def __init__(self, doc: Doc, root_key: str = ""):
        self._doc: _ConfigurationParser.Doc = doc
        self.key: str = root_key

    def __contains__(self, key: Union[int, str]) -> bool:
        return key in self._doc

    def __getitem__(self, key: Union[int, str]) -> Any:
        child_key = self.key + (f".{key}" if isinstance(key, str) else f"[{key}]")
        try:
            value = self._doc[key]
            return (
                _ConfigurationParser(value, child_key)
                if isinstance(value, (dict, list))
                else value
            )
        except KeyError:
            raise ConfigurationParseError(f"Required key is missing: {child_key}")

    def ensure_type(self, expected: Type) -> None:
        if not isinstance(self._doc, expected):
            raise ConfigurationParseError(
                f"Expected a {expected.__name__} at {self.key or 'top level'}, "
                f"found a {type(self.doc).__name__}"
            )

    @property
    def doc(self) -> Doc:
        """Return the underlying dictionary or list."""
        return self._doc

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value assigned to `key` if defined, otherwise return `default`."""
        return self[key] if key in self else default

    def get_section(self, key: str) -> "_ConfigurationParser":
        """Return the parser for the dict under `key`, empty if `key` is absent."""
        if key not in self:
            return _ConfigurationParser({}, f"{self.key}.{key}")
        section = self[key]
        if not isinstance(section, _ConfigurationParser):
            raise ConfigurationParseError(
                f"Expected a dict at {self.key}.{key}, found {section!r}"
            )
        section.ensure_type(dict)
        return section

    def read_timeout(self, key: str, default: float) -> float:
        """Read a positive number of seconds assigned to `key`."""
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationParseError(
                f"Expected a number at {self.key}.{key}, found {value!r}"
            )
        if value <= 0:
            raise ConfigurationParseError(
                f"Expected a positive timeout at {self.key}.{key}, found {value}"
            )
        return float(value)

    def read_flag(self, key: str, default: bool) -> bool:
        """Read a boolean assigned to `key`."""
        value = self.get(key, default)
        if not isinstance(value, bool):
            raise ConfigurationParseError(
                f"Expected true or false at {self.key}.{key}, found {value!r}"
            )
        return value

    def read_log_level(self, key: str) -> Optional[str]:
        """Read a `logging` level name assigned to `key`, if any."""
        value = self.get(key)
        if value is None:
            return None
        if not isinstance(value, str) or not isinstance(
            logging.getLevelName(value.upper()), int
        ):
            raise ConfigurationParseError(
                f"Expected a log level name at {self.key}.{key}, found {value!r}"
            )
        return value.upper()


def load_dict(
    dict_: Dict[str, Any],
    overrides: Optional[List[Override]] = None,
) -> Configuration:
    """Read a configuration from `dict_`, after applying `overrides` to it."""

    doc = _ConfigurationParser(dict_)
    doc.ensure_type(dict)

    if overrides:
        _apply_overrides(dict_, overrides)

    wait = doc.get_section("wait")
    diagnostics = doc.get_section("diagnostics")
    logging_ = doc.get_section("logging")

    return Configuration(
        default_timeout=wait.read_timeout("default-timeout", DEFAULT_TIMEOUT),
        colorize=diagnostics.read_flag("colorize", False),
        log_level=logging_.read_log_level("level"),
    )


def load_yaml(
    yaml_path: Union[Path, str], overrides: Optional[List[Override]] = None
) -> Configuration:
    """Load a configuration from a YAML file at `yaml_path'.

    It's possible to override values from the YAML file through the use of `overrides`.
    Each override is a tuple of a dict path and a value to insert at that path.
    Dict paths are dot-separated flattened paths in the YAML file, e.g.:
    `"diagnostics.colorize"`.
    """

    with open(str(yaml_path)) as f:
        dict_ = yaml.safe_load(f) or {}
    return load_dict(dict_, overrides)


def _apply_overrides(dict_: Dict[str, Any], overrides: List[Override]):
    for (dict_path, value) in overrides:
        path_list: List[str] = dict_path.split(".")
        # `new` creates any missing intermediate dicts and replaces the leaf
        dpath.new(dict_, path_list, value)
