from datetime import UTC, datetime, timedelta, timezone

from awakenfetch.report import build_csv_filename, write_csv


class TestBuildCsvFilename:
    def test_standard(self):
        when = datetime(2024, 7, 4, 12, tzinfo=UTC)
        assert build_csv_filename("Kaspa", "kaspa:qz0123456789", when) == "awakenfetch_kaspa_kaspa:qz_20240704.csv"

    def test_perps_suffix(self):
        when = datetime(2024, 7, 4, tzinfo=UTC)
        name = build_csv_filename("hyperliquid", "0xabcdef0123456789", when, variant="perps")
        assert name == "awakenfetch_hyperliquid_0xabcdef_20240704_perps.csv"

    def test_date_taken_in_utc(self):
        when = datetime(2024, 7, 5, 2, tzinfo=timezone(timedelta(hours=5)))
        assert build_csv_filename("kaspa", "abcdefghij", when).endswith("_20240704.csv")


class TestWriteCsv:
    def test_writes_utf8(self, tmp_path):
        path = write_csv(tmp_path / "out.csv", "Date,Notes\n01/01/2024 00:00:00,Transfer to 5FHneW46…")
        assert path.read_text(encoding="utf-8").endswith("…")
