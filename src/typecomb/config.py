"""
Compiler options.

Options come from three places, later ones winning:
    1. CompilerOptions defaults
    2. the [tool.typecomb] table of a pyproject.toml
    3. the TYPECOMB_SKIP_ASSERTS environment variable

Example pyproject.toml:

    [tool.typecomb]
    skip-asserts = true
    runtime-alias = "tc"
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from typecomb.utils.errors import ConfigError

ENV_SKIP_ASSERTS = "TYPECOMB_SKIP_ASSERTS"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class CompilerOptions:
    """
    Options controlling what the compiler emits.

    Attributes:
        skip_asserts: Emit type definitions but no assertion calls
        runtime_module: Module the emitted code imports combinators from
        runtime_alias: Preferred local name for that module
        recursive_marker: Comment text marking a recursive declaration
    """

    skip_asserts: bool = False
    runtime_module: str = "typecomb.runtime"
    runtime_alias: str = "t"
    recursive_marker: str = "recursive"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "CompilerOptions":
        """Build options from a mapping with kebab-case or snake_case keys."""
        known = {f.name: f for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            name = key.replace("-", "_")
            if name not in known:
                raise ConfigError(f"unknown option '{key}'")
            expected = bool if name == "skip_asserts" else str
            if not isinstance(value, expected):
                raise ConfigError(
                    f"option '{key}' must be a {expected.__name__}, got {type(value).__name__}"
                )
            kwargs[name] = value
        return cls(**kwargs)

    def with_environment(self, environ: Optional[Mapping[str, str]] = None) -> "CompilerOptions":
        """Apply environment overrides."""
        environ = os.environ if environ is None else environ
        raw = environ.get(ENV_SKIP_ASSERTS)
        if raw is None:
            return self
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return replace(self, skip_asserts=True)
        if value in _FALSE_VALUES:
            return replace(self, skip_asserts=False)
        raise ConfigError(f"{ENV_SKIP_ASSERTS} must be a boolean, got '{raw}'")


def load_options(
    path: Union[str, Path, None] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CompilerOptions:
    """
    Load options from a pyproject.toml file.

    Args:
        path: pyproject.toml to read; when it does not exist, or when None,
            the defaults are used
        environ: Environment to read overrides from (defaults to os.environ)

    Raises:
        ConfigError: If the file is not valid TOML or holds unknown options
    """
    options = CompilerOptions()
    if path is not None:
        pyproject = Path(path)
        if pyproject.is_file():
            try:
                with pyproject.open("rb") as f:
                    data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"invalid TOML in {pyproject}: {e}") from e
            table = data.get("tool", {}).get("typecomb", {})
            options = CompilerOptions.from_mapping(table)
    return options.with_environment(environ)
