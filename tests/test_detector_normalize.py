import unittest


from tools.detectors import UNCLASSIFIED_CWE, normalize_detector_output
from vuln_benchmark.domain import Finding


class TestDetectorNormalize(unittest.TestCase):
    def test_empty_outputs(self) -> None:
        self.assertEqual([], normalize_detector_output(None))
        self.assertEqual([], normalize_detector_output([]))
        self.assertEqual([], normalize_detector_output({"findings": None}))

    def test_list_of_findings_with_aliases(self) -> None:
        raw = [
            {"cwe_id": "CWE-125", "line_number": "9", "score": 0.8},
            {"cweId": 787, "lineNumber": 3, "sev": 7.5},
        ]
        out = normalize_detector_output(raw)
        self.assertEqual(
            [
                Finding(cwe="CWE-125", line=9, confidence=0.8),
                Finding(cwe="CWE-787", line=3, severity=7.5),
            ],
            out,
        )
        self.assertEqual(raw[0], out[0].raw)

    def test_wrapped_mapping_and_single_finding(self) -> None:
        self.assertEqual(
            [Finding(cwe="CWE-416", line=None)],
            normalize_detector_output({"predictions": [{"cwe": "CWE-416"}]}),
        )
        self.assertEqual(
            [Finding(cwe="CWE-20", line=4)],
            normalize_detector_output({"cwe": "cwe-20", "line": 4}),
        )

    def test_vulnerability_verdicts(self) -> None:
        self.assertEqual([Finding(cwe=None)], normalize_detector_output({"vulnerable": False}))
        self.assertEqual(
            [Finding(cwe=UNCLASSIFIED_CWE, line=5)],
            normalize_detector_output({"vulnerable": True, "line": 5}),
        )

    def test_lines_fan_out_in_order(self) -> None:
        out = normalize_detector_output({"cwe": "CWE-125", "lines": [9, 3]})
        self.assertEqual([9, 3], [f.line for f in out])

    def test_bare_cwe_items(self) -> None:
        out = normalize_detector_output(["CWE-416", 787])
        self.assertEqual(["CWE-416", "CWE-787"], [f.cwe for f in out])

    def test_bad_items_are_dropped(self) -> None:
        with self.assertLogs("tools.detectors.normalize", level="WARNING"):
            out = normalize_detector_output([{"cwe": True}, 3.5, {"cwe": "CWE-1"}])
        self.assertEqual(["CWE-1"], [f.cwe for f in out])

    def test_unrecognized_shape_raises(self) -> None:
        with self.assertRaises(ValueError):
            normalize_detector_output(3.5)
        with self.assertRaises(ValueError):
            normalize_detector_output({"findings": "CWE-1"})


if __name__ == "__main__":
    unittest.main()
