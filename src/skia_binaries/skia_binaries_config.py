"""
Configuration parameters for skia_binaries.
"""

import inspect
import os
import pathlib
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional, Union

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from skia_binaries.skia_binaries_exceptions import ConfigurationError

DEFAULT_REPO = "shopify/react-native-skia"
DEFAULT_HOST = "github.com"
DEFAULT_USER_AGENT = "node"
DEFAULT_MAX_RETRIES = 5

SKIP_DOWNLOAD_ENV = "SKIP_SKIA_DOWNLOAD"
CONFIG_FILE_NAME = "skia-binaries.toml"
CONFIG_TABLE = "skia-binaries"


def env_flag_enabled(value: Optional[str]) -> bool:
    """Return True for the values accepted by the download toggle ("1" or "true")."""
    return value in ("1", "true")


@dataclass(frozen=True)
class SkiaBinariesConfig:
    """
    Configuration shared by the fetch pipeline and its call sites.
    """

    repo: str = DEFAULT_REPO
    host: str = DEFAULT_HOST
    user_agent: str = DEFAULT_USER_AGENT
    max_retries: int = DEFAULT_MAX_RETRIES
    skip_download: bool = False
    graphite: bool = False

    def __post_init__(self):
        if self.max_retries < 0:
            raise ConfigurationError(
                f"max_retries must be non-negative, got {self.max_retries}"
            )
        if "/" not in self.repo:
            raise ConfigurationError(
                f"repo must look like <owner>/<name>, got {self.repo!r}"
            )

    @classmethod
    def from_dict(cls, env: Dict[str, Any]) -> "SkiaBinariesConfig":
        """
        Create a SkiaBinariesConfig instance from a dictionary, ignoring unknown keys
        """
        normalized = {k.replace("-", "_"): v for k, v in env.items()}
        return cls(
            **{
                k: v
                for k, v in normalized.items()
                if k in inspect.signature(cls).parameters
            }
        )

    @classmethod
    def from_toml(cls, path: Union[str, pathlib.Path]) -> "SkiaBinariesConfig":
        """
        Load the [skia-binaries] table of a TOML file.

        Raises:
            ConfigurationError: If the file cannot be parsed
        """
        try:
            with open(path, "rb") as f:
                toml_dict = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Failed to parse {path}: {e}") from e

        table = toml_dict.get(CONFIG_TABLE, {})
        if not isinstance(table, dict):
            raise ConfigurationError(f"[{CONFIG_TABLE}] in {path} must be a table")
        return cls.from_dict(table)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        base: Optional["SkiaBinariesConfig"] = None,
    ) -> "SkiaBinariesConfig":
        """
        Apply environment overrides on top of `base` (or the defaults).

        Only SKIP_SKIA_DOWNLOAD is consulted; it is read here once so the
        pipeline itself never looks at the environment.
        """
        environ = os.environ if environ is None else environ
        config = base or cls()
        if env_flag_enabled(environ.get(SKIP_DOWNLOAD_ENV)):
            config = replace(config, skip_download=True)
        return config

    @classmethod
    def load(
        cls,
        workspace_root: Optional[Union[str, pathlib.Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "SkiaBinariesConfig":
        """
        Resolve the effective configuration: TOML file if present, then the
        environment, then explicit overrides (None values are ignored).
        """
        root = pathlib.Path(workspace_root or os.getcwd())
        toml_path = root / CONFIG_FILE_NAME
        config = cls.from_toml(toml_path) if toml_path.exists() else cls()
        config = cls.from_env(environ, base=config)

        known = {f.name for f in fields(cls)}
        explicit = {k: v for k, v in overrides.items() if k in known and v is not None}
        return replace(config, **explicit) if explicit else config
