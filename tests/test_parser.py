import json

import pytest

from triage.errors import MalformedInput, NoValidEntries
from triage.parser import extract_cabinet, parse_upload


class TestParseUpload:
    def test_array_with_cabinets_keeps_every_entry_in_order(self, sample_upload, sample_logs):
        entries = parse_upload(sample_upload)
        assert len(entries) == len(sample_logs)
        assert [e.cabinet_name for e in entries] == ["Room1", "Room1", "Room2", "Room2"]
        assert [e.id for e in entries] == ["a1", "a2", "b1", None]

    def test_alternate_spelling_is_normalized(self):
        entries = parse_upload('[{"cabinetName":"Room1","status":"Error"}, {"cabinet_name":"Room1","status":"Info"}]')
        assert len(entries) == 2
        assert all(e.cabinet_name == "Room1" for e in entries)
        out = entries[1].to_dict()
        assert out["cabinetName"] == "Room1"
        assert "cabinet_name" not in out

    def test_canonical_spelling_wins(self):
        entries = parse_upload('{"cabinetName": "A", "cabinet_name": "B"}')
        assert entries[0].cabinet_name == "A"

    def test_bare_object_becomes_one_entry(self):
        entries = parse_upload('{"cabinetName": "Room9", "message": "hello"}')
        assert len(entries) == 1
        assert entries[0].message == "hello"

    def test_unknown_fields_preserved(self):
        entries = parse_upload('{"cabinetName": "R", "tray": 2, "meta": {"k": [1, 2]}}')
        assert entries[0].extra == {"tray": 2, "meta": {"k": [1, 2]}}
        assert entries[0].to_dict()["meta"] == {"k": [1, 2]}

    def test_entries_without_cabinet_are_dropped(self):
        entries = parse_upload(json.dumps([
            {"cabinetName": "R1"},
            {"message": "orphan"},
            {"cabinetName": ""},
            "not an object",
            {"cabinet_name": "R2"},
        ]))
        assert [e.cabinet_name for e in entries] == ["R1", "R2"]

    def test_empty_object_has_no_valid_entries(self):
        with pytest.raises(NoValidEntries):
            parse_upload("{}")

    def test_empty_array_has_no_valid_entries(self):
        with pytest.raises(NoValidEntries):
            parse_upload("[]")

    def test_invalid_json_is_malformed(self):
        with pytest.raises(MalformedInput):
            parse_upload("{not json")

    def test_blank_text_is_malformed(self):
        with pytest.raises(MalformedInput):
            parse_upload("   \n")


class TestExtractCabinet:
    def test_non_dict(self):
        assert extract_cabinet(["cabinetName"]) is None

    def test_falls_back_to_snake_case(self):
        assert extract_cabinet({"cabinet_name": "X"}) == "X"


class TestParseUploadBytes:
    def test_utf8_bytes_accepted(self):
        entries = parse_upload('{"cabinetName": "Кабинет 1"}'.encode("utf-8"))
        assert entries[0].cabinet_name == "Кабинет 1"

    def test_invalid_utf8_is_malformed(self):
        with pytest.raises(MalformedInput):
            parse_upload(b'{"cabinetName": "R\xff"}')
