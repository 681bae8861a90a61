from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest
from finflow.errors import IngestError
from finflow.ingest import filter_bank_messages, load_messages
from finflow.models import RawMessage
from helpers.sms_samples import AMAZON_DEBIT, CHAT, SWIGGY_UPI

NOW = "2025-01-20T10:00:00+00:00"


def test_json_array_keeps_ids_and_numbers_missing_ones(tmp_path: Path):
    p = tmp_path / "backup.json"
    p.write_text(
        json.dumps(
            [
                {"id": "m1", "content": AMAZON_DEBIT, "sender": "HDFC-BANK", "timestamp": "2025-01-15T09:30:00Z"},
                {"content": SWIGGY_UPI},
            ]
        ),
        encoding="utf-8",
    )

    msgs = load_messages(p, now=NOW)

    assert msgs == [
        RawMessage(id="m1", content=AMAZON_DEBIT, sender="HDFC-BANK", timestamp="2025-01-15T09:30:00Z"),
        RawMessage(id="json_1", content=SWIGGY_UPI, sender="Unknown", timestamp=NOW),
    ]


def test_json_messages_object_and_epoch_timestamps(tmp_path: Path):
    p = tmp_path / "backup.JSON"
    p.write_text(
        json.dumps({"messages": [{"id": 7, "content": "Rs.10 debited", "timestamp": 1735689600000}]}),
        encoding="utf-8",
    )

    (msg,) = load_messages(p, now=NOW)

    assert msg.id == "7"
    assert msg.timestamp == "2025-01-01T00:00:00+00:00"


def test_json_entries_without_content_are_skipped(tmp_path: Path):
    p = tmp_path / "backup.json"
    p.write_text(json.dumps([{"sender": "X"}, "nope", {"content": "Rs.5 paid"}]), encoding="utf-8")

    msgs = load_messages(p, now=NOW)

    assert [m.id for m in msgs] == ["json_2"]


@pytest.mark.parametrize("body", ["{not json", '{"items": []}', "42"])
def test_bad_json_raises_ingest_error(tmp_path: Path, body: str):
    p = tmp_path / "backup.json"
    p.write_text(body, encoding="utf-8")
    with pytest.raises(IngestError, match="check file format"):
        load_messages(p, now=NOW)


def test_xml_backup(tmp_path: Path):
    p = tmp_path / "sms.xml"
    p.write_text(
        textwrap.dedent(
            """\
            <?xml version="1.0" encoding="UTF-8"?>
            <smses count="3">
              <sms address="VK-HDFCBK" body="Rs.100 debited at DMART" date="1735689600000" />
              <sms body="Rs.5 credited" />
              <sms address="X" />
            </smses>
            """
        ),
        encoding="utf-8",
    )

    msgs = load_messages(p, now=NOW)

    assert msgs == [
        RawMessage("imported_0", "Rs.100 debited at DMART", "VK-HDFCBK", "2025-01-01T00:00:00+00:00"),
        RawMessage("imported_1", "Rs.5 credited", "Unknown", NOW),
    ]


def test_malformed_xml_raises_ingest_error(tmp_path: Path):
    p = tmp_path / "sms.xml"
    p.write_text("<smses><sms body='x'>", encoding="utf-8")
    with pytest.raises(IngestError):
        load_messages(p, now=NOW)


def test_plain_text_one_message_per_line(tmp_path: Path):
    p = tmp_path / "dump.txt"
    p.write_text(f"{AMAZON_DEBIT}\n\n   \n{CHAT}\n", encoding="utf-8")

    msgs = load_messages(p, now=NOW)

    assert [(m.id, m.sender, m.timestamp) for m in msgs] == [
        ("text_0", "Imported", NOW),
        ("text_3", "Imported", NOW),
    ]
    assert msgs[1].content == CHAT


def test_missing_file_raises_ingest_error(tmp_path: Path):
    with pytest.raises(IngestError):
        load_messages(tmp_path / "absent.txt")


def test_filter_bank_messages_by_content_or_sender():
    msgs = [
        RawMessage("1", AMAZON_DEBIT, "Imported", NOW),
        RawMessage("2", CHAT, "Imported", NOW),
        RawMessage("3", "Your OTP is 1234", "SBI BANK", NOW),
        RawMessage("4", "Card credit limit increased", "+1555", NOW),
    ]
    assert [m.id for m in filter_bank_messages(msgs)] == ["1", "3", "4"]
