"""
Tests for hl7_lab_parser.server
"""

import json
import logging
import socket
import threading
from pathlib import Path

import pytest

from hl7apy.mllp import MLLPServer

from hl7_lab_parser.config import AppConfig
from hl7_lab_parser.server import (
    LAB_MESSAGE_TYPES,
    FallbackHandler,
    ParsedMessageHandler,
    build_handlers,
    build_server,
    frame,
    routing_keys,
)

EXPECTED_DATA = {
    "MSH": {"clave": "KEY1"},
    "OBR": {"clave": "KEY2"},
    "OBX": {"clave": "KEY3", "nombre": "Name Part", "resultado": "12.50"},
}


def _unframe(reply: str) -> dict:
    assert reply.startswith("\x0b")
    assert reply.endswith("\x1c\r")
    return json.loads(reply[1:-2])


def test_frame_wraps_payload():
    assert frame("{}") == "\x0b{}\x1c\r"


def test_parsed_message_handler_saves_and_echoes(store, lab_message):
    raw = lab_message.replace("\n", "\r")
    handler = ParsedMessageHandler(raw, store, AppConfig())
    body = _unframe(handler.reply())

    assert body["data"] == EXPECTED_DATA
    assert body["message"] == f"HL7 message saved in {body['filePath']}"
    saved = Path(body["filePath"])
    assert json.loads(saved.read_text(encoding="utf-8")) == EXPECTED_DATA


def test_parsed_message_handler_honours_repeat_policy(store):
    raw = "MSH|^~\\&|A|B|C|D|K\rOBX|1|NM|A|One|1\rOBX|2|NM|B|Two|2"
    cfg = AppConfig(collapse_repeats=False)
    body = _unframe(ParsedMessageHandler(raw, store, cfg).reply())
    assert [r["nombre"] for r in body["data"]["OBX"]] == ["One", "Two"]


def test_fallback_handler_parses_with_lenient_parser(store, lab_message):
    exc = ValueError("unsupported")
    handler = FallbackHandler(exc, lab_message, store, AppConfig())
    body = _unframe(handler.reply())
    assert body["data"] == EXPECTED_DATA
    assert handler.exc.args == ("unsupported",)


def test_fallback_handler_reports_malformed_message(store):
    handler = FallbackHandler(ValueError("bad"), "OBX|1|2", store, AppConfig())
    assert _unframe(handler.reply()) == {
        "error": "HL7 message has no MSH header segment"
    }
    assert list(store.directory.iterdir()) == []


def test_fallback_handler_headerless_allowed_by_config(store):
    cfg = AppConfig(require_header=False)
    handler = FallbackHandler(ValueError("x"), "OBR|1|2|3|4|5|K", store, cfg)
    body = _unframe(handler.reply())
    assert body["data"] == {"OBR": {"clave": "K"}}


def test_build_handlers_routes_lab_message_types_and_errors(store):
    cfg = AppConfig()
    handlers = build_handlers(store, cfg)
    assert set(handlers) == set(routing_keys()) | {"ERR"}
    assert handlers["ORU^R01"] == (ParsedMessageHandler, store, cfg)
    assert handlers["ORU^R01^ORU_R01"] == (ParsedMessageHandler, store, cfg)
    assert handlers["ERR"] == (FallbackHandler, store, cfg)


def test_build_server_binds_configured_address(tmp_path):
    cfg = AppConfig(host="127.0.0.1", port=0, data_dir=tmp_path, save_path="inbox")
    server = build_server(cfg)
    try:
        assert isinstance(server, MLLPServer)
        assert server.server_address[0] == "127.0.0.1"
        assert (tmp_path / "inbox").is_dir()
    finally:
        server.server_close()


def test_routing_keys_cover_both_msh9_forms():
    keys = routing_keys()
    assert len(keys) == 2 * len(LAB_MESSAGE_TYPES)
    for code, event, structure in LAB_MESSAGE_TYPES:
        assert f"{code}^{event}" in keys
        assert f"{code}^{event}^{structure}" in keys


# ------------------------------------------------------------------------------
# Over the wire
# ------------------------------------------------------------------------------

ORU_MESSAGE = (
    "MSH|^~\\&|LAB|H|LIS|H|20240101||ORU^R01^ORU_R01|1|P|2.5\r"
    "OBR|1|||CBC||20240101\r"
    "OBX|1|NM|HGB|Hemoglobin^g/dL|13.2|g/dL|||||F|||20240102\r"
)

ORU_DATA = {
    "MSH": {"clave": "20240101"},
    "OBR": {"clave": "20240101"},
    "OBX": {"clave": "20240102", "nombre": "Hemoglobin g/dL", "resultado": "13.20"},
}


@pytest.fixture
def running_server(tmp_path):
    cfg = AppConfig(host="127.0.0.1", port=0, data_dir=tmp_path, save_path="inbox")
    server = build_server(cfg)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def _send(server, raw: str) -> str:
    host, port = server.server_address[:2]
    with socket.create_connection((host, port), timeout=5) as sock:
        sock.sendall(frame(raw).encode("utf-8"))
        buf = b""
        while not buf.endswith(b"\x1c\r"):
            chunk = sock.recv(4096)
            if not chunk:
                break
            buf += chunk
    return buf.decode("utf-8")


def test_lab_message_over_mllp_is_parsed_saved_and_echoed(
    running_server, tmp_path, caplog
):
    with caplog.at_level(logging.DEBUG, logger="hl7_lab_parser.server"):
        body = _unframe(_send(running_server, ORU_MESSAGE))

    assert body["data"] == ORU_DATA
    assert body["message"] == f"HL7 message saved in {body['filePath']}"
    saved = Path(body["filePath"])
    assert saved.parent == (tmp_path / "inbox").resolve()
    assert json.loads(saved.read_text(encoding="utf-8")) == ORU_DATA

    assert "Received HL7 message" in caplog.text
    assert "could not route" not in caplog.text


def test_non_lab_message_over_mllp_goes_through_fallback(running_server, caplog):
    raw = ORU_MESSAGE.replace("ORU^R01^ORU_R01", "ADT^A01^ADT_A01")
    with caplog.at_level(logging.DEBUG, logger="hl7_lab_parser.server"):
        body = _unframe(_send(running_server, raw))

    assert body["data"] == ORU_DATA
    assert "could not route" in caplog.text
    assert "Received HL7 message" not in caplog.text
