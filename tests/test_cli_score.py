import csv
import io
import json
import shlex
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock


from vuln_bench_cli import main, parse_args

# Flags CWE-125 on line 3 for every function containing "memcpy", else "safe".
DETECTOR = (
    "import json, sys\n"
    "src = json.load(sys.stdin)[0]\n"
    "out = [{'cwe': 'CWE-125', 'line': 3}] if 'memcpy' in src else [{'vulnerable': False}]\n"
    "print(json.dumps(out))\n"
)

SAMPLES = [
    {
        "id": "v1",
        "sourceText": "void f(char *d, char *s, int n)\n{\n  memcpy(d, s, n);\n}\n",
        "groundTruthCwe": "CWE-125",
        "groundTruthLine": 3,
        "fixedText": "void f(char *d, char *s, int n)\n{\n  copy_checked(d, s, n);\n}\n",
    },
    {"id": "v2", "sourceText": "int g(void)\n{\n  return 0;\n}\n", "groundTruthCwe": "CWE-416"},
    {"id": "broken", "groundTruthCwe": "CWE-1"},
]


def _detector_cmd() -> str:
    return " ".join(shlex.quote(p) for p in [sys.executable, "-c", DETECTOR])


class TestCliScore(unittest.TestCase):
    def test_parse_args(self) -> None:
        args = parse_args(["score", "--samples", "s.json", "--detector-url", "http://x", "--workers", "2"])
        self.assertEqual("score", args.command)
        self.assertEqual(Path("s.json"), args.samples)
        self.assertEqual(2, args.workers)
        self.assertIsNone(args.line_tolerance)
        self.assertIsNone(args.strict)

    def test_detector_flags_are_exclusive(self) -> None:
        with self.assertRaises(SystemExit):
            parse_args(["score", "--detector-url", "http://x", "--detector-cmd", "infer"])

    def test_score_writes_report_and_verdicts(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            samples = root / "samples.json"
            samples.write_text(json.dumps(SAMPLES), encoding="utf-8")
            out_dir = root / "out"

            with redirect_stdout(io.StringIO()):
                with self.assertRaises(SystemExit) as ctx:
                    main(
                        [
                            "score",
                            "--samples",
                            str(samples),
                            "--detector-cmd",
                            _detector_cmd(),
                            "--out",
                            str(out_dir),
                            "--workers",
                            "2",
                            "--expand-fixed",
                        ]
                    )
            self.assertEqual(0, ctx.exception.code)

            report = json.loads((out_dir / "report.json").read_text(encoding="utf-8"))
            overall = report["report"]["overall"]
            self.assertEqual(1, overall["true_positives"])
            self.assertEqual(1, overall["false_negatives"])
            self.assertEqual(1, overall["true_negatives"])
            self.assertEqual(1.0, overall["line_accuracy"])
            self.assertEqual(1, len(report["load_errors"]))

            with (out_dir / "verdicts.csv").open(newline="", encoding="utf-8") as f:
                rows = {r["sample_id"]: r for r in csv.DictReader(f)}
            self.assertEqual("CWE_AND_LINE_MATCH", rows["v1"]["status"])
            self.assertEqual("TRUE_NEGATIVE", rows["v1#fixed"]["status"])
            self.assertEqual("v1", rows["v1#fixed"]["pair_id"])
            self.assertEqual("FALSE_NEGATIVE", rows["v2"]["status"])

    def test_strict_load_aborts(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            samples = Path(td) / "samples.json"
            samples.write_text(json.dumps(SAMPLES), encoding="utf-8")
            with self.assertRaises(SystemExit) as ctx:
                main(["score", "--samples", str(samples), "--detector-cmd", _detector_cmd(), "--strict"])
            self.assertIn("broken", str(ctx.exception.code))

    def test_unavailable_detector_exits_2(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            samples = Path(td) / "samples.json"
            samples.write_text(json.dumps(SAMPLES[:1]), encoding="utf-8")
            failing = " ".join(shlex.quote(p) for p in [sys.executable, "-c", "import sys; sys.exit(1)"])

            buf = io.StringIO()
            fast_retries = {"VULN_BENCH_RETRY_ATTEMPTS": "2", "VULN_BENCH_RETRY_BACKOFF_SECONDS": "0"}
            with mock.patch.dict("os.environ", fast_retries), redirect_stdout(buf):
                with self.assertRaises(SystemExit) as ctx:
                    main(["score", "--samples", str(samples), "--detector-cmd", failing])
            self.assertEqual(2, ctx.exception.code)
            printed = json.loads(buf.getvalue())
            self.assertEqual(1, printed["report"]["overall"]["inconclusive"])
            self.assertEqual("detector_unavailable", printed["failures"][0]["kind"])


class TestCliCorpus(unittest.TestCase):
    def test_corpus_to_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            (root / "63.cpp").write_text(
                "int f(void)\n{\n  return g();\n}\n\n// CppCheck ID: 63\n// CWE-ID: CWE-125\n",
                encoding="utf-8",
            )
            out = root / "samples.json"
            with redirect_stdout(io.StringIO()):
                with self.assertRaises(SystemExit) as ctx:
                    main(["corpus", str(root), "--out", str(out)])
            self.assertEqual(0, ctx.exception.code)
            records = json.loads(out.read_text(encoding="utf-8"))
            self.assertEqual("63", records[0]["id"])
            self.assertEqual("CWE-125", records[0]["groundTruthCwe"])


if __name__ == "__main__":
    unittest.main()
