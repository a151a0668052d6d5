"""Configuration management for gitsemver."""

from __future__ import annotations

import configparser
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class RepositoryConfig(BaseModel):
    """Repository location and references."""

    path: str = "."
    head: str = "HEAD"
    notes_ref: str = "refs/notes/semver"


class OptionsConfig(BaseModel):
    """General options configuration."""

    # Validated by the engine so a bad value reports as an invalid count method
    count_method: str = "merge"


class KeywordsConfig(BaseModel):
    """Annotation keywords recognized in notes."""

    major: str = Field(default="+semver: major", min_length=1)
    minor: str = Field(default="+semver: minor", min_length=1)
    set_version: str = Field(default="+semver: set-version", min_length=1)
    set_prerelease: str = Field(default="+semver: set-prerelease", min_length=1)
    clear_prerelease: str = Field(default="+semver: clear-prerelease", min_length=1)
    patch: str = Field(default="+semver: patch", min_length=1)


class AppConfig(BaseModel):
    """Application configuration."""

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    options: OptionsConfig = Field(default_factory=OptionsConfig)
    keywords: KeywordsConfig = Field(default_factory=KeywordsConfig)


# Global config instance
_config: AppConfig | None = None
_config_path: Path | None = None  # Track where config was loaded from


def get_config_paths() -> list[Path]:
    """Get list of config file paths to search, in priority order.

    Search order:
    1. Current working directory (gitsemver.ini)
    2. User home directory (~/.gitsemver/gitsemver.ini)
    3. YAML files in the same two places

    Returns:
        List of paths to check for config files.
    """
    cwd = Path.cwd()
    home_dir = Path.home() / ".gitsemver"

    return [
        cwd / "gitsemver.ini",
        home_dir / "gitsemver.ini",
        cwd / ".gitsemver.yaml",
        cwd / ".gitsemver.yml",
        home_dir / "config.yaml",
        home_dir / "config.yml",
    ]


def find_config_file() -> Path | None:
    """Find the first existing config file.

    Returns:
        Path to config file if found, None otherwise.
    """
    for path in get_config_paths():
        if path.exists():
            return path
    return None


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and $VAR syntax.

    Args:
        value: Config value (string, dict, list, or other).

    Returns:
        Value with environment variables expanded.
    """
    if isinstance(value, str):
        # Pattern matches ${VAR} or $VAR
        pattern = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, "")

        return pattern.sub(replace, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _read_section(parser: configparser.ConfigParser, section: str, keys: list[str]) -> dict[str, str]:
    """Read the non-empty values of ``keys`` from an INI section."""
    if not parser.has_section(section):
        return {}
    values: dict[str, str] = {}
    for key in keys:
        value = parser.get(section, key, fallback="").strip()
        if value:
            values[key] = value
    return values


def _load_ini_config(path: Path) -> dict[str, Any]:
    """Load configuration from INI file.

    Args:
        path: Path to INI config file.

    Returns:
        Dictionary structure matching AppConfig schema.
    """
    # Keywords contain ":" so only "=" separates keys from values
    parser = configparser.ConfigParser(delimiters=("=",), interpolation=None)
    parser.read(path, encoding="utf-8")

    config: dict[str, Any] = {}

    repository = _read_section(parser, "repository", ["path", "head", "notes_ref"])
    if repository:
        config["repository"] = repository

    options = _read_section(parser, "options", ["count_method"])
    if options:
        config["options"] = options

    keywords = _read_section(parser, "keywords", list(KeywordsConfig.model_fields))
    if keywords:
        config["keywords"] = keywords

    return config


def _load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file.

    Returns:
        Dictionary structure matching AppConfig schema.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file.

    Supports both INI (.ini/.cfg) and YAML (.yaml/.yml) formats.
    Environment variables are expanded in all values using ${VAR} syntax.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Loaded configuration with environment variables expanded.
    """
    global _config, _config_path

    # Find config file
    if path is None:
        path = find_config_file()

    if path is None or not path.exists():
        # No config file, return defaults
        _config = AppConfig()
        _config_path = None
        return _config

    # Load based on file extension
    if path.suffix in (".ini", ".cfg"):
        raw_config = _load_ini_config(path)
    else:
        raw_config = _load_yaml_config(path)

    # Expand environment variables
    expanded_config = _expand_env_vars(raw_config)

    # Parse into config model
    _config = AppConfig.model_validate(expanded_config)
    _config_path = path
    return _config


def get_config_path() -> Path | None:
    """Get the path to the currently loaded config file.

    Returns:
        Path to config file, or None if using defaults.
    """
    return _config_path


def get_config() -> AppConfig:
    """Get the current configuration.

    Loads from file if not already loaded.

    Returns:
        Current application configuration.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the cached configuration.

    Useful for testing or when config file changes.
    """
    global _config, _config_path
    _config = None
    _config_path = None


def get_config_dir() -> Path:
    """Get the user config directory.

    Creates the directory if it doesn't exist.

    Returns:
        Path to config directory.
    """
    config_dir = Path.home() / ".gitsemver"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def save_default_config(path: Path | None = None, count_method: str = "merge") -> Path:
    """Save a default INI config file.

    Args:
        path: Where to save. Defaults to ./gitsemver.ini (current directory).
        count_method: Counting policy to write into [options].

    Returns:
        Path to saved config file.
    """
    if path is None:
        path = Path.cwd() / "gitsemver.ini"

    defaults = KeywordsConfig()

    default_config = f"""\
# gitsemver Configuration
# You can use environment variables with ${{VAR}} syntax

[repository]
# Path inside the repository (parent directories are searched)
path = .
# Reference to derive the version at
head = HEAD
# Notes reference holding version annotations
notes_ref = refs/notes/semver

[options]
# Which patch bumps are counted: merge, commit or manual
count_method = {count_method}

[keywords]
# Annotation text recognized in notes (literal, case-sensitive)
major = {defaults.major}
minor = {defaults.minor}
set_version = {defaults.set_version}
set_prerelease = {defaults.set_prerelease}
clear_prerelease = {defaults.clear_prerelease}
patch = {defaults.patch}
"""

    # Ensure parent directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config)

    return path
