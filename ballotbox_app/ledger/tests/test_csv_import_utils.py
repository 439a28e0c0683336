import datetime

from django.test import SimpleTestCase

from ledger.csv_import_utils import (
    build_header_index,
    cell,
    decode_csv_bytes,
    is_blank_row,
    norm_csv_header,
    parse_csv_bool,
    parse_csv_datetime,
    read_csv_table,
    resolve_column_index,
    sanitize_csv_cell,
)


class CsvHeaderTests(SimpleTestCase):
    def test_norm_csv_header_strips_case_and_punctuation(self) -> None:
        self.assertEqual(norm_csv_header(" Voter_ID "), "voterid")

    def test_resolve_column_index_uses_first_matching_alias(self) -> None:
        index = build_header_index(["ID", "Password", "id"])

        self.assertEqual(index, {"id": 0, "password": 1})
        self.assertEqual(resolve_column_index(index, "voterId", "id"), 0)
        self.assertIsNone(resolve_column_index(index, "hasVoted"))


class CsvRowTests(SimpleTestCase):
    def test_read_csv_table_keeps_ragged_rows(self) -> None:
        headers, rows = read_csv_table('a, b\n1,"x, y"\n2\n')

        self.assertEqual(headers, ["a", "b"])
        self.assertEqual(rows, [["1", "x, y"], ["2"]])

    def test_cell_tolerates_short_rows(self) -> None:
        self.assertEqual(cell([" v1 "], 0), "v1")
        self.assertEqual(cell(["v1"], 1), "")
        self.assertEqual(cell(["v1"], None), "")

    def test_is_blank_row(self) -> None:
        self.assertTrue(is_blank_row([]))
        self.assertTrue(is_blank_row(["", "  "]))
        self.assertFalse(is_blank_row(["", "x"]))

    def test_decode_csv_bytes_strips_bom(self) -> None:
        self.assertEqual(decode_csv_bytes(b"\xef\xbb\xbfid"), "id")


class CsvValueTests(SimpleTestCase):
    def test_parse_csv_bool(self) -> None:
        for value in ["true", "TRUE", "1", "yes", "t"]:
            with self.subTest(value=value):
                self.assertTrue(parse_csv_bool(value))
        for value in ["false", "0", "", None, "no"]:
            with self.subTest(value=value):
                self.assertFalse(parse_csv_bool(value))

    def test_parse_csv_datetime_treats_naive_values_as_utc(self) -> None:
        self.assertEqual(
            parse_csv_datetime("2025-01-01 10:30:05"),
            datetime.datetime(2025, 1, 1, 10, 30, 5, tzinfo=datetime.UTC),
        )

    def test_parse_csv_datetime_keeps_explicit_offsets(self) -> None:
        parsed = parse_csv_datetime("2025-01-01T12:00:00+02:00")

        self.assertEqual(parsed, datetime.datetime(2025, 1, 1, 10, 0, tzinfo=datetime.UTC))

    def test_parse_csv_datetime_returns_none_for_garbage(self) -> None:
        self.assertIsNone(parse_csv_datetime("not-a-date"))
        self.assertIsNone(parse_csv_datetime(""))


class CsvExportCellTests(SimpleTestCase):
    def test_sanitize_csv_cell_prefixes_formula_starters(self) -> None:
        for raw in ["=SUM(A1:A2)", "+1", "-1", "@cmd", "\tx", "\rx"]:
            with self.subTest(raw=raw):
                self.assertEqual(sanitize_csv_cell(raw), f"'{raw}")

    def test_sanitize_csv_cell_keeps_plain_values(self) -> None:
        self.assertEqual(sanitize_csv_cell("Jane Doe"), "Jane Doe")
        self.assertEqual(sanitize_csv_cell(""), "")
