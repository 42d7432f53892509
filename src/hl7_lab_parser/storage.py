# src/hl7_lab_parser/storage.py
"""
File sink for parse results.

Results are written as JSON, one file per message, named after the time the
message was received (hl7-message-DDMMYYYY-HHMMSS.txt). Save paths requested
by clients are confined to the configured data directory.
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
from pathlib import Path
from typing import Optional, Union

from .exceptions import StorageError
from .hl7_parser import ParsedMessage, to_dict

LOG = logging.getLogger(__name__)

FILENAME_PATTERN = "hl7-message-{stamp}.txt"
STAMP_FORMAT = "%d%m%Y-%H%M%S"

# Prefixes clients send that already point at the data directory.
_STRIP_PREFIXES = ("./data/", "./")


def resolve_save_path(base_dir: Union[str, Path], requested: str) -> Path:
    """
    Resolve a client-supplied save path inside ``base_dir`` and create it.

    Parameters
    ----------
    base_dir : str or Path
        Data directory that every save path must stay inside.
    requested : str
        Relative path such as "lab/2024", "./lab" or "./data/lab". "" selects
        base_dir itself.

    Returns
    -------
    Path
        Absolute, existing directory.

    Raises
    ------
    StorageError
        If the path resolves outside base_dir or cannot be created.
    """
    base = Path(base_dir).resolve()
    clean = requested or ""
    for prefix in _STRIP_PREFIXES:
        if clean.startswith(prefix):
            clean = clean[len(prefix):]
            break

    full = (base / clean).resolve()
    if full != base and base not in full.parents:
        raise StorageError(f"Save path is outside the data directory: {requested}")

    try:
        full.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"Cannot create save directory {full}: {e}") from e
    return full


def message_filename(now: Optional[_dt.datetime] = None) -> str:
    """Return the file name used for a message received at ``now``."""
    now = now or _dt.datetime.now()
    return FILENAME_PATTERN.format(stamp=now.strftime(STAMP_FORMAT))


def parsed_to_json(parsed: ParsedMessage, pretty: bool = False) -> str:
    """Serialize a parse result (either repeat mode) to JSON."""
    return json.dumps(to_dict(parsed), indent=2 if pretty else None)


class MessageStore:
    """
    Writes parse results into one directory.

    Parameters
    ----------
    directory : Path
        Existing directory, normally obtained from resolve_save_path.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    @classmethod
    def from_config(cls, data_dir: Union[str, Path], save_path: str) -> "MessageStore":
        return cls(resolve_save_path(data_dir, save_path))

    def save(
        self,
        parsed: ParsedMessage,
        now: Optional[_dt.datetime] = None,
        pretty: bool = False,
    ) -> Path:
        """
        Write ``parsed`` as JSON and return the file path.

        Raises
        ------
        StorageError
            If the file cannot be written.
        """
        out_path = self.directory / message_filename(now)
        if out_path.exists():
            LOG.warning(
                "Overwriting %s; another message was saved in the same second",
                out_path,
            )
        try:
            out_path.write_text(parsed_to_json(parsed, pretty), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write {out_path}: {e}") from e
        LOG.info("HL7 message saved in %s", out_path)
        return out_path
