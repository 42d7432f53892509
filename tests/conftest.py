# tests/conftest.py
import pytest

from hl7_lab_parser.storage import MessageStore

# MSH-7, OBR-6 and OBX-14 carry the keys; OBX-4/5 the test name and value.
LAB_MESSAGE = (
    "MSH|^~\\&|A|B|C|D|KEY1\n"
    "OBR|1|2|3|4|5|KEY2\n"
    "OBX|1|2|3|Name^Part|12.5|mg/dL|||||F|||KEY3"
)


@pytest.fixture
def lab_message() -> str:
    return LAB_MESSAGE


@pytest.fixture
def store(tmp_path) -> MessageStore:
    out = tmp_path / "data"
    out.mkdir()
    return MessageStore(out)
