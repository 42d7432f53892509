# src/hl7_lab_parser/config.py
"""
Configuration utilities for hl7_lab_parser.

Provides a simple dataclass-based configuration object and a loader that reads
YAML configuration files when present.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Attributes
    ----------
    host : str
        Interface the MLLP listener binds to.
    port : int
        TCP port of the MLLP listener.
    data_dir : Path
        Root directory for saved parse results. Save paths may not leave it.
    save_path : str
        Subdirectory of data_dir where results are written ("" for data_dir
            itself).
    collapse_repeats : bool
        Keep only the last model per segment type (see hl7_parser.parse).
    require_header : bool
        Reject messages that have no MSH segment.
    """

    host: str = "localhost"
    port: int = 3000
    data_dir: Path = Path("data")
    save_path: str = ""
    collapse_repeats: bool = True
    require_header: bool = True


def load_config(path: Optional[Path]) -> AppConfig:
    """
    Load application configuration from a YAML file.

    Parameters
    ----------
    path : Path or None
        Path to a YAML config file. If None, defaults are used.

    Returns
    -------
    AppConfig
        The loaded configuration.

    Raises
    ------
    TypeError
        If the YAML file does not parse to a mapping at the top level.
    ValueError
        If port is not an integer in 0..65535.
    yaml.YAMLError
        If the file is not valid YAML.
    """
    if path is None:
        return AppConfig()

    data: Any = yaml.safe_load(path.read_text())

    if data is None:
        return AppConfig()

    if not isinstance(data, Mapping):
        raise TypeError(
            f"Config file must contain a mapping at top level, "
            f"got {type(data).__name__}. "
            f"Config file: {path}"
        )

    defaults = AppConfig()
    port = data.get("port", defaults.port)
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
        raise ValueError(f"port must be an integer in 0..65535, got {port!r}")

    return AppConfig(
        host=str(data.get("host", defaults.host)),
        port=port,
        data_dir=Path(data.get("data_dir", defaults.data_dir)),
        save_path=str(data.get("save_path") or ""),
        collapse_repeats=bool(data.get("collapse_repeats", defaults.collapse_repeats)),
        require_header=bool(data.get("require_header", defaults.require_header)),
    )
