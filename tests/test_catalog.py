import json
import tempfile
import unittest
from pathlib import Path


from vuln_benchmark.errors import MalformedRecord
from vuln_benchmark.gt import SampleStore, dump_records, load_records

RECORDS = [
    {"id": "a", "sourceText": "int a;\nint b;\n", "groundTruthCwe": "CWE-125", "groundTruthLine": 2},
    {"id": "b", "sourceText": "int c;\n", "groundTruthCwe": None},
]


class TestCatalog(unittest.TestCase):
    def test_json_list_and_wrapped_mapping(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            (root / "list.json").write_text(json.dumps(RECORDS), encoding="utf-8")
            (root / "wrapped.json").write_text(json.dumps({"samples": RECORDS}), encoding="utf-8")

            self.assertEqual(RECORDS, load_records(root / "list.json"))
            self.assertEqual(RECORDS, load_records(root / "wrapped.json"))

    def test_jsonl_skips_blank_lines_and_reports_bad_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "samples.jsonl"
            p.write_text("\n".join(json.dumps(r) for r in RECORDS) + "\n\n", encoding="utf-8")
            self.assertEqual(RECORDS, load_records(p))

            p.write_text(json.dumps(RECORDS[0]) + "\n{not json\n", encoding="utf-8")
            with self.assertRaises(MalformedRecord) as ctx:
                load_records(p)
            self.assertEqual(1, ctx.exception.position)

    def test_yaml_catalog(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "samples.yaml"
            p.write_text(
                "samples:\n"
                "  - id: a\n"
                "    sourceText: |\n"
                "      int a;\n"
                "      int b;\n"
                "    groundTruthCwe: CWE-125\n"
                "    groundTruthLine: 2\n"
                "  - id: b\n"
                "    sourceText: \"int c;\"\n"
                "    groundTruthCwe: null\n",
                encoding="utf-8",
            )
            store = SampleStore.load(load_records(p))
            self.assertEqual(("a", "b"), store.ids())
            self.assertEqual("CWE-125", store.get("a").ground_truth_cwe)
            self.assertIsNone(store.get("b").ground_truth_cwe)

    def test_missing_file_and_bad_shape(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            with self.assertRaises(FileNotFoundError):
                load_records(root / "nope.json")
            (root / "bad.json").write_text(json.dumps({"x": 1}), encoding="utf-8")
            with self.assertRaises(ValueError):
                load_records(root / "bad.json")

    def test_dump_records_writes_loadable_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "out" / "samples.json"
            out.parent.mkdir()
            text = dump_records(RECORDS, out)
            self.assertEqual(RECORDS, json.loads(text))
            self.assertEqual(RECORDS, load_records(out))


if __name__ == "__main__":
    unittest.main()
