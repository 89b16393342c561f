"""
Unit tests for typecomb compiler options.
"""

from textwrap import dedent

import pytest

from typecomb.config import ENV_SKIP_ASSERTS, CompilerOptions, load_options
from typecomb.utils.errors import ConfigError


def write_pyproject(tmp_path, body: str):
    path = tmp_path / "pyproject.toml"
    path.write_text(dedent(body), encoding="utf-8")
    return path


class TestCompilerOptions:
    """Tests for CompilerOptions construction."""

    def test_defaults(self):
        """Test default option values."""
        options = CompilerOptions()
        assert options.skip_asserts is False
        assert options.runtime_module == "typecomb.runtime"
        assert options.runtime_alias == "t"
        assert options.recursive_marker == "recursive"

    def test_from_mapping_kebab_case(self):
        """Test kebab-case keys are accepted."""
        options = CompilerOptions.from_mapping({"skip-asserts": True, "runtime-alias": "tc"})
        assert options.skip_asserts is True
        assert options.runtime_alias == "tc"

    def test_unknown_option(self):
        """Test unknown keys are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            CompilerOptions.from_mapping({"strict": True})
        assert "unknown option 'strict'" in str(exc_info.value)

    def test_wrong_type(self):
        """Test option values are type checked."""
        with pytest.raises(ConfigError):
            CompilerOptions.from_mapping({"skip-asserts": "yes"})
        with pytest.raises(ConfigError):
            CompilerOptions.from_mapping({"runtime-alias": 1})


class TestEnvironment:
    """Tests for environment overrides."""

    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_true_values(self, value):
        """Test values that enable skip_asserts."""
        options = CompilerOptions().with_environment({ENV_SKIP_ASSERTS: value})
        assert options.skip_asserts is True

    @pytest.mark.parametrize("value", ["0", "false", "no", "off", ""])
    def test_false_values(self, value):
        """Test values that disable skip_asserts."""
        options = CompilerOptions(skip_asserts=True).with_environment({ENV_SKIP_ASSERTS: value})
        assert options.skip_asserts is False

    def test_unset(self):
        """Test an unset variable changes nothing."""
        options = CompilerOptions(skip_asserts=True)
        assert options.with_environment({}) is options

    def test_invalid_value(self):
        """Test values that are not booleans are rejected."""
        with pytest.raises(ConfigError):
            CompilerOptions().with_environment({ENV_SKIP_ASSERTS: "maybe"})


class TestLoadOptions:
    """Tests for pyproject.toml loading."""

    def test_no_path(self):
        """Test defaults without a file."""
        assert load_options(environ={}) == CompilerOptions()

    def test_missing_file(self, tmp_path):
        """Test a missing file means defaults."""
        assert load_options(tmp_path / "pyproject.toml", environ={}) == CompilerOptions()

    def test_tool_table(self, tmp_path):
        """Test the [tool.typecomb] table is read."""
        path = write_pyproject(tmp_path, """
            [project]
            name = "app"

            [tool.typecomb]
            skip-asserts = true
            runtime-alias = "tc"
        """)
        options = load_options(path, environ={})
        assert options == CompilerOptions(skip_asserts=True, runtime_alias="tc")

    def test_without_tool_table(self, tmp_path):
        """Test a pyproject without the table gives defaults."""
        path = write_pyproject(tmp_path, """
            [project]
            name = "app"
        """)
        assert load_options(path, environ={}) == CompilerOptions()

    def test_environment_wins(self, tmp_path):
        """Test the environment overrides the file."""
        path = write_pyproject(tmp_path, """
            [tool.typecomb]
            skip-asserts = true
        """)
        options = load_options(path, environ={ENV_SKIP_ASSERTS: "0"})
        assert options.skip_asserts is False

    def test_invalid_toml(self, tmp_path):
        """Test broken TOML is a ConfigError."""
        path = write_pyproject(tmp_path, "[tool.typecomb\n")
        with pytest.raises(ConfigError):
            load_options(path, environ={})

    def test_unknown_key_in_file(self, tmp_path):
        """Test unknown keys in the file are rejected."""
        path = write_pyproject(tmp_path, """
            [tool.typecomb]
            check-returns = true
        """)
        with pytest.raises(ConfigError):
            load_options(path, environ={})
