"""Tests for csv_ingest/ingestion/csv_parser.py."""

import pytest

from csv_ingest.errors import EmptyInput, InputError
from csv_ingest.ingestion.csv_parser import decode_csv_bytes, parse_csv_bytes, parse_csv_text

HEADER = "nomor_surat,nama_pegawai,nip,status_verifikasi,created_at,jabatan,perihal"


class TestDecode:
    def test_utf8(self):
        assert decode_csv_bytes("nama\nBudi Śantoso\n".encode("utf-8")) == "nama\nBudi Śantoso\n"

    def test_bom_dropped(self):
        assert decode_csv_bytes(b"\xef\xbb\xbfa,b\n1,2\n") == "a,b\n1,2\n"

    def test_invalid_utf8(self):
        with pytest.raises(InputError, match="UTF-8"):
            decode_csv_bytes(b"a,b\n\xff\xfe,1\n")


class TestParse:
    def test_header_semantics(self):
        rows = parse_csv_text(f"{HEADER}\n001,Alice,123,Verified,2024-01-01,Staff,Request\n")
        assert rows == [
            {
                "nomor_surat": "001",
                "nama_pegawai": "Alice",
                "nip": "123",
                "status_verifikasi": "Verified",
                "created_at": "2024-01-01",
                "jabatan": "Staff",
                "perihal": "Request",
            }
        ]

    def test_values_stay_strings(self):
        rows = parse_csv_text("nip,flag,note\n007,NA,null\n")
        assert rows == [{"nip": "007", "flag": "NA", "note": "null"}]

    def test_blank_lines_skipped(self):
        rows = parse_csv_text("a,b\n\n1,2\n\n\n3,4\n")
        assert [r["a"] for r in rows] == ["1", "3"]

    def test_all_empty_cells_skipped(self):
        rows = parse_csv_text("a,b\n1,2\n,\n  , \n3,4\n")
        assert len(rows) == 2

    def test_empty_cells_kept_as_empty_string(self):
        rows = parse_csv_text("a,b\n1,\n")
        assert rows == [{"a": "1", "b": ""}]

    def test_quoted_commas(self):
        rows = parse_csv_text('a,b\n"x, y",2\n')
        assert rows[0]["a"] == "x, y"

    def test_header_whitespace_stripped(self):
        rows = parse_csv_text(" a , b\n1,2\n")
        assert set(rows[0]) == {"a", "b"}

    def test_short_line_missing_cells(self):
        rows = parse_csv_text("a,b,c\n1,2\n")
        assert rows[0]["a"] == "1"
        assert rows[0]["c"] in (None, "")

    def test_too_many_cells(self):
        with pytest.raises(InputError, match="Could not parse"):
            parse_csv_text("a,b\n1,2\n1,2,3\n")

    def test_duplicate_header(self):
        with pytest.raises(InputError, match="Duplicate"):
            parse_csv_text("a,a\n1,2\n")


class TestEmptyInput:
    def test_empty_file(self):
        with pytest.raises(EmptyInput):
            parse_csv_bytes(b"")

    def test_whitespace_only(self):
        with pytest.raises(EmptyInput):
            parse_csv_bytes(b"\n\n  \n")

    def test_header_only(self):
        with pytest.raises(EmptyInput, match="no data rows"):
            parse_csv_bytes(f"{HEADER}\n".encode())

    def test_only_empty_rows(self):
        with pytest.raises(EmptyInput):
            parse_csv_bytes(b"a,b\n,\n,\n")

    def test_empty_input_is_input_error(self):
        assert issubclass(EmptyInput, InputError)
