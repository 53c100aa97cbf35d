"""Path management for unityclean.

This module provides two groups of paths:

- Application directories following the XDG Base Directory Specification
  (config, state) where unityclean keeps its own files.
- Platform special folders owned by Unity (editor cache, credential
  stores) resolved from the environment rather than hard-coded.

XDG defaults:
- Config: ~/.config/unityclean/
- State: ~/.local/state/unityclean/
"""

import os
import sys
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "unityclean"

# Used only when the platform lookups below yield nothing (e.g. a stripped
# Windows service environment without LOCALAPPDATA/APPDATA).
FALLBACK_UNITY_DATA_DIR = Path.home() / ".unity3d"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/unityclean/ (or XDG_CONFIG_HOME/unityclean/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the recent-projects list and build logs.

    Returns:
        Path to ~/.local/state/unityclean/ (or XDG_STATE_HOME/unityclean/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the configuration file path.

    Returns:
        Path to ~/.config/unityclean/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_recent_projects_path() -> Path:
    """Get the recent projects file path.

    Returns:
        Path to ~/.local/state/unityclean/recent_projects.txt.
    """
    return get_state_dir() / "recent_projects.txt"


def get_build_logs_dir() -> Path:
    """Get the directory holding captured build output.

    Returns:
        Path to ~/.local/state/unityclean/build-logs/.
    """
    return get_state_dir() / "build-logs"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_build_logs_dir() -> Path:
    """Create the build log directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_build_logs_dir(), "build log")


# =============================================================================
# Platform special folders
# =============================================================================


def _platform() -> str:
    """Return a coarse platform key: "windows", "macos" or "linux"."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "linux"


def _env_path(name: str) -> Path | None:
    value = os.environ.get(name)
    return Path(value) if value else None


def _xdg_base(env_var: str, default_subdir: str) -> Path:
    base = os.environ.get(env_var)
    return Path(base) if base else Path.home() / default_subdir


def get_local_app_data_dir() -> Path | None:
    """Get the per-user, machine-local application data folder.

    Returns:
        LOCALAPPDATA on Windows, ~/Library/Application Support on macOS,
        XDG_CONFIG_HOME on Linux. None if the Windows lookup is unavailable.
    """
    match _platform():
        case "windows":
            return _env_path("LOCALAPPDATA")
        case "macos":
            return Path.home() / "Library" / "Application Support"
        case _:
            return _xdg_base("XDG_CONFIG_HOME", ".config")


def get_roaming_app_data_dir() -> Path | None:
    """Get the per-user roaming application data folder.

    Returns:
        APPDATA on Windows, ~/Library/Application Support on macOS,
        XDG_CONFIG_HOME on Linux. None if the Windows lookup is unavailable.
    """
    match _platform():
        case "windows":
            return _env_path("APPDATA")
        case "macos":
            return Path.home() / "Library" / "Application Support"
        case _:
            return _xdg_base("XDG_CONFIG_HOME", ".config")


def get_unity_data_dir() -> Path:
    """Get Unity's machine-local data directory.

    This is the scan base of the editor cache category; the editor cache
    itself lives in its ``Editor`` subdirectory.

    Returns:
        ``%LOCALAPPDATA%/Unity`` on Windows, ``~/Library/Unity`` on macOS,
        ``$XDG_CONFIG_HOME/unity3d`` on Linux, or
        :data:`FALLBACK_UNITY_DATA_DIR` when the lookup is unavailable.
    """
    match _platform():
        case "windows":
            local = get_local_app_data_dir()
            return local / "Unity" if local else FALLBACK_UNITY_DATA_DIR
        case "macos":
            return Path.home() / "Library" / "Unity"
        case _:
            return _xdg_base("XDG_CONFIG_HOME", ".config") / "unity3d"


def get_credential_roots() -> list[Path]:
    """Get the directories where Unity and Unity Hub keep sign-in data.

    Duplicates are removed while preserving order (on Linux and macOS the
    roaming and local folders coincide).

    Returns:
        Ordered list of candidate credential directories. The directories
        may not exist.
    """
    roots: list[Path] = []
    roaming = get_roaming_app_data_dir()
    local = get_local_app_data_dir()

    match _platform():
        case "windows":
            if roaming:
                roots.append(roaming / "Unity")
            if local:
                roots.append(local / "Unity")
            if roaming:
                roots.append(roaming / "UnityHub")
            if not roots:
                roots.append(FALLBACK_UNITY_DATA_DIR)
        case "macos":
            roots.append(Path.home() / "Library" / "Unity")
            if roaming:
                roots.append(roaming / "Unity")
                roots.append(roaming / "UnityHub")
        case _:
            base = _xdg_base("XDG_CONFIG_HOME", ".config")
            roots.append(base / "unity3d")
            roots.append(base / "Unity")
            roots.append(base / "UnityHub")

    unique: list[Path] = []
    for root in roots:
        if root not in unique:
            unique.append(root)
    return unique


def get_installed_editors_dir() -> Path:
    """Get the directory where Unity Hub installs editor versions.

    Returns:
        ``Program Files/Unity/Hub/Editor`` on Windows,
        ``/Applications/Unity/Hub/Editor`` on macOS,
        ``~/Unity/Hub/Editor`` on Linux.
    """
    match _platform():
        case "windows":
            program_files = _env_path("ProgramFiles") or Path("C:/Program Files")
            return program_files / "Unity" / "Hub" / "Editor"
        case "macos":
            return Path("/Applications/Unity/Hub/Editor")
        case _:
            return Path.home() / "Unity" / "Hub" / "Editor"


def get_default_search_dirs() -> list[Path]:
    """Get the conventional locations where Unity projects are kept.

    Returns:
        Candidate directories for project discovery. They may not exist.
    """
    home = Path.home()
    dirs = [
        home / "Documents",
        home / "Documents" / "Unity Projects",
        home / "Unity Projects",
        home / "UnityProjects",
    ]
    if _platform() == "windows":
        dirs.extend([Path("C:/Unity Projects"), Path("D:/Unity Projects")])
    return dirs
