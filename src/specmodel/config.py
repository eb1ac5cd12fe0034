"""Configuration management with XDG paths, atomic writes, and environment overrides.

This module handles all persistent configuration for specmodel:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.specmodel/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Settings file** -- A single :class:`~specmodel.models.Settings` JSON
  file holding schema groups (validation and cache options) and loader
  limits. See :func:`load_settings` and :func:`save_settings`.
* **Environment overrides** -- :func:`resolve_settings` layers
  ``SPECMODEL_STRICTNESS`` and ``SPECMODEL_CACHE_TTL`` over the file.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from specmodel.exceptions import ConfigurationError
from specmodel.models import Settings, StrictnessLevel

_APP_NAME = "specmodel"
_CONFIG_FILENAME = "config.json"

ENV_STRICTNESS = "SPECMODEL_STRICTNESS"
ENV_CACHE_TTL = "SPECMODEL_CACHE_TTL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/specmodel/`` (default ``~/.config/specmodel/``).
    On macOS/Windows: ``~/.specmodel/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir(settings: Optional[Settings] = None) -> Path:
    """Return the cache directory, creating it if necessary.

    Used to store descriptor artifacts. Cached data can be safely deleted
    at any time. ``settings.cache_dir`` takes precedence when set.

    On Linux/BSD: ``$XDG_CACHE_HOME/specmodel/`` (default ``~/.cache/specmodel/``).
    On macOS/Windows: ``~/.specmodel/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if settings is not None and settings.cache_dir:
        path = Path(settings.cache_dir).expanduser()
    elif _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings file ---


def settings_path() -> Path:
    """Path to the settings file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from *path* (default: the XDG config directory).

    Returns:
        The deserialised :class:`~specmodel.models.Settings`. If the file
        does not exist, a default instance is returned.

    Raises:
        ConfigurationError: If the file exists but contains invalid JSON or
            fails Pydantic validation.
    """
    path = path or settings_path()
    if not path.is_file():
        return Settings()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValueError, ConfigurationError) as exc:
        raise ConfigurationError(f"Invalid settings file at {path}: {exc}") from exc


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """Persist settings atomically to disk.

    Returns:
        The path written.
    """
    path = path or settings_path()
    data = settings.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Precedence resolution ---


def resolve_settings(
    path: Optional[Path] = None,
    cli_strictness: Optional[str] = None,
) -> Settings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flag (``cli_strictness``)
        2. Environment variables (``SPECMODEL_STRICTNESS``, ``SPECMODEL_CACHE_TTL``)
        3. Settings file
        4. Defaults

    Overrides apply to every configured schema group.

    Raises:
        ConfigurationError: If the file is invalid or an override names an
            unknown strictness level or a non-integer/negative TTL.
    """
    settings = load_settings(path)

    strictness: Optional[StrictnessLevel] = None
    env_strictness = os.environ.get(ENV_STRICTNESS)
    if env_strictness:
        strictness = StrictnessLevel.parse(env_strictness)
    if cli_strictness is not None:
        strictness = StrictnessLevel.parse(cli_strictness)

    ttl: Optional[int] = None
    env_ttl = os.environ.get(ENV_CACHE_TTL)
    if env_ttl:
        try:
            ttl = int(env_ttl)
        except ValueError:
            raise ConfigurationError(
                f"{ENV_CACHE_TTL} must be an integer number of seconds (got {env_ttl!r})"
            ) from None
        if ttl < 0:
            raise ConfigurationError(f"{ENV_CACHE_TTL} must be zero or positive (got {ttl})")

    if strictness is None and ttl is None:
        return settings

    groups = {}
    for name, group in settings.groups.items():
        validation = group.validation
        cache = group.cache
        if strictness is not None:
            validation = validation.model_copy(update={"strictness": strictness})
        if ttl is not None:
            cache = cache.model_copy(update={"ttl_seconds": ttl})
        groups[name] = group.model_copy(update={"validation": validation, "cache": cache})

    return settings.model_copy(update={"groups": groups})
