import unittest
from dataclasses import FrozenInstanceError


from vuln_benchmark.domain import FALSE_NEGATIVE, Finding, LineRef, Sample, Verdict


class TestLineRef(unittest.TestCase):
    def test_parse(self) -> None:
        self.assertEqual(LineRef.known(9), LineRef.parse(9))
        self.assertEqual(LineRef.known(9), LineRef.parse(" 9 "))
        self.assertEqual(LineRef.known(9), LineRef.parse(9.0))
        for raw in (None, "", "unknown", "?", "N/A"):
            self.assertFalse(LineRef.parse(raw).is_known, raw)
        for raw in (0, -3, 2.5, True, "line 9", [9]):
            with self.assertRaises(ValueError):
                LineRef.parse(raw)

    def test_unknown_line_must_be_handled_explicitly(self) -> None:
        ref = LineRef.unknown()
        with self.assertRaises(ValueError):
            _ = ref.line
        self.assertFalse(ref.matches(9))
        self.assertEqual("unknown", ref.to_json())

    def test_matches_with_tolerance(self) -> None:
        ref = LineRef.known(9)
        self.assertTrue(ref.matches(9))
        self.assertFalse(ref.matches(10))
        self.assertTrue(ref.matches(10, tolerance=1))
        self.assertFalse(ref.matches(None, tolerance=5))


class TestSample(unittest.TestCase):
    def test_samples_are_immutable(self) -> None:
        s = Sample(sample_id="a", source_text="x", ground_truth_cwe="CWE-1")
        with self.assertRaises(FrozenInstanceError):
            s.ground_truth_cwe = None  # type: ignore[misc]

    def test_fixed_variant_is_a_separate_sample(self) -> None:
        s = Sample(
            sample_id="a",
            source_text="bad();",
            ground_truth_cwe="CWE-787",
            ground_truth_line=LineRef.known(1),
            fixed_text="good();",
            provenance_row="2953",
        )
        fixed = s.fixed_variant()
        self.assertEqual("a#fixed", fixed.sample_id)
        self.assertEqual("good();", fixed.source_text)
        self.assertIsNone(fixed.ground_truth_cwe)
        self.assertEqual("a", fixed.pair_id)
        self.assertEqual("2953", fixed.provenance_row)
        # The original is untouched.
        self.assertEqual("bad();", s.source_text)
        self.assertIsNone(s.pair_id)

    def test_to_dict_uses_record_keys(self) -> None:
        s = Sample(sample_id="a", source_text="x", ground_truth_cwe=None)
        self.assertEqual(
            {"id": "a", "sourceText": "x", "groundTruthCwe": None, "groundTruthLine": "unknown"},
            s.to_dict(),
        )


class TestFindingAndVerdict(unittest.TestCase):
    def test_finding_create_drops_bad_lines(self) -> None:
        self.assertIsNone(Finding.create("CWE-1", 0).line)
        self.assertIsNone(Finding.create("CWE-1", "abc").line)
        self.assertEqual(4, Finding.create("CWE-1", "4").line)
        self.assertFalse(Finding.create("none").is_report)

    def test_verdict_rejects_unknown_status(self) -> None:
        with self.assertRaises(ValueError):
            Verdict(sample_id="a", status="MAYBE", ground_truth_cwe=None, line_known=False)  # type: ignore[arg-type]

    def test_verdict_row(self) -> None:
        v = Verdict(sample_id="a", status=FALSE_NEGATIVE, ground_truth_cwe="CWE-416", line_known=True)
        row = v.to_row()
        self.assertEqual("FALSE_NEGATIVE", row["status"])
        self.assertEqual("", row["matched_cwe"])


if __name__ == "__main__":
    unittest.main()
