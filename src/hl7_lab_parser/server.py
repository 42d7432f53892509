# src/hl7_lab_parser/server.py
"""
MLLP listener for inbound lab messages.

Each message received is parsed, written to the message store and echoed back
to the sender as an MLLP-framed JSON document:

    {"filePath": "...", "message": "HL7 message saved in ...", "data": {...}}

Messages that cannot be parsed get {"error": "..."} instead. hl7apy routes on
the full MSH-9 value (e.g. "ORU^R01" or "ORU^R01^ORU_R01"); lab message types
go to ParsedMessageHandler. Anything hl7apy cannot route or read is handed to
FallbackHandler, which retries with the lenient parser.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from hl7apy.mllp import AbstractErrorHandler, AbstractHandler, MLLPServer

from .config import AppConfig
from .exceptions import HL7LabError
from .hl7_parser import parse, to_dict
from .storage import MessageStore

LOG = logging.getLogger(__name__)

START_BLOCK = "\x0b"
END_BLOCK = "\x1c"
CARRIAGE_RETURN = "\x0d"

# (message code, trigger event, structure) of the lab messages routed straight
# to ParsedMessageHandler.
LAB_MESSAGE_TYPES = (
    ("ORU", "R01", "ORU_R01"),
    ("OUL", "R22", "OUL_R22"),
    ("ORM", "O01", "ORM_O01"),
    ("OML", "O21", "OML_O21"),
)


def routing_keys() -> List[str]:
    """
    Return the MSH-9 values routed to ParsedMessageHandler.

    Senders fill MSH-9 either as CODE^EVENT or as CODE^EVENT^STRUCTURE, and
    hl7apy looks the handler up by the whole field, so both forms are listed.
    """
    keys = []
    for code, event, structure in LAB_MESSAGE_TYPES:
        keys.append(f"{code}^{event}")
        keys.append(f"{code}^{event}^{structure}")
    return keys


def frame(payload: str) -> str:
    """Wrap ``payload`` in MLLP start/end blocks."""
    return f"{START_BLOCK}{payload}{END_BLOCK}{CARRIAGE_RETURN}"


def _process(raw: str, store: MessageStore, config: AppConfig) -> Dict[str, Any]:
    """Parse and persist one message; return the reply document."""
    try:
        parsed = parse(
            raw,
            require_header=config.require_header,
            collapse_repeats=config.collapse_repeats,
        )
        path = store.save(parsed)
    except HL7LabError as e:
        LOG.error("Error processing HL7 message: %s", e)
        return {"error": str(e)}

    return {
        "filePath": str(path),
        "message": f"HL7 message saved in {path}",
        "data": to_dict(parsed),
    }


class ParsedMessageHandler(AbstractHandler):
    """Handles messages whose structure hl7apy recognized."""

    def __init__(self, message: str, store: MessageStore, config: AppConfig):
        super().__init__(message)
        self.store = store
        self.config = config

    def reply(self) -> str:
        LOG.debug("Received HL7 message (%d chars)", len(self.incoming_message))
        body = _process(self.incoming_message, self.store, self.config)
        return frame(json.dumps(body))


class FallbackHandler(AbstractErrorHandler):
    """
    Handles messages hl7apy rejected (unknown structure, bad encoding chars,
    or a parse failure). The lenient parser gets a second try before an
    error document is returned.
    """

    def __init__(
        self, exc: Exception, message: str, store: MessageStore, config: AppConfig
    ):
        super().__init__(exc, message)
        self.store = store
        self.config = config

    def reply(self) -> str:
        LOG.debug(
            "hl7apy could not route message (%s: %s); using lenient parser",
            type(self.exc).__name__,
            self.exc,
        )
        body = _process(self.incoming_message, self.store, self.config)
        return frame(json.dumps(body))


def build_handlers(store: MessageStore, config: AppConfig) -> Dict[str, tuple]:
    """Return the hl7apy handler table for the listener."""
    handlers: Dict[str, tuple] = {
        key: (ParsedMessageHandler, store, config) for key in routing_keys()
    }
    handlers["ERR"] = (FallbackHandler, store, config)
    return handlers


def build_server(
    config: AppConfig, store: Optional[MessageStore] = None
) -> MLLPServer:
    """
    Create (and bind) the MLLP listener described by ``config``.

    Raises
    ------
    StorageError
        If the configured save path is invalid.
    OSError
        If the address cannot be bound.
    """
    if store is None:
        store = MessageStore.from_config(config.data_dir, config.save_path)
    server = MLLPServer(config.host, config.port, build_handlers(store, config))
    LOG.info(
        "MLLP listener on %s:%s, saving to %s",
        config.host,
        config.port,
        store.directory,
    )
    return server


def serve(config: AppConfig) -> None:
    """Run the listener until interrupted."""
    server = build_server(config)
    try:
        server.serve_forever()
    finally:
        server.server_close()
        LOG.info("MLLP listener stopped")
