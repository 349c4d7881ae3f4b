import csv
import tempfile
import unittest
from pathlib import Path


from vuln_benchmark.io import read_json, write_csv_atomic, write_json_atomic, write_text_atomic


class TestSafeIO(unittest.TestCase):
    def test_write_json_is_atomic_and_cleans_temp(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            out_dir = root / "out"
            out_path = out_dir / "report.json"

            payload = {"overall": {"true_positives": 1, "precision": None}, "per_cwe": {}}
            write_json_atomic(out_path, payload)

            # File written and readable
            self.assertTrue(out_path.exists())
            self.assertEqual(payload, read_json(out_path))
            self.assertTrue(out_path.read_text(encoding="utf-8").endswith("\n"))

            # No temp files left behind on success
            self.assertEqual([], list(out_dir.glob("*.tmp")))

    def test_failed_write_keeps_previous_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "report.json"
            write_text_atomic(out_path, "old\n")

            with self.assertRaises(TypeError):
                write_json_atomic(out_path, {"bad": object()})

            self.assertEqual("old\n", out_path.read_text(encoding="utf-8"))
            self.assertEqual([], list(Path(td).glob("*.tmp")))

    def test_write_csv_with_fixed_header(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "verdicts.csv"
            write_csv_atomic(
                out_path,
                [{"sample_id": "a", "status": "FALSE_NEGATIVE"}, {"sample_id": "b"}],
                fieldnames=["sample_id", "status", "detail"],
            )
            with out_path.open(newline="", encoding="utf-8") as f:
                rows = list(csv.DictReader(f))
            self.assertEqual(["sample_id", "status", "detail"], list(rows[0].keys()))
            self.assertEqual("", rows[1]["status"])


if __name__ == "__main__":
    unittest.main()
