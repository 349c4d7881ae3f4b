import random
import unittest


from pipeline.scoring import aggregate, inconclusive, match
from vuln_benchmark.domain import CweCounts, Finding, LineRef, Report, Sample


def _sample(sid: str, cwe, line) -> Sample:
    return Sample(
        sample_id=sid,
        source_text="\n".join(["x"] * 20),
        ground_truth_cwe=cwe,
        ground_truth_line=LineRef.parse(line),
    )


def _verdicts():
    return [
        match(_sample("a", "CWE-125", 9), [Finding.create("CWE-125", 9)]),  # line hit
        match(_sample("b", "CWE-125", 9), [Finding.create("CWE-125", 3)]),  # line miss
        match(_sample("c", "CWE-125", "unknown"), [Finding.create("CWE-125", 1)]),  # unknown line
        match(_sample("d", "CWE-416", 5), []),  # missed
        match(_sample("e", "CWE-416", 5), [Finding.create("CWE-787", 5)]),  # wrong CWE
        match(_sample("f", None, None), [Finding.create("CWE-20", 2)]),  # fixture flagged
        match(_sample("g", None, None), []),  # fixture quiet
        inconclusive(_sample("h", "CWE-190", 3), "timeout"),
        inconclusive(_sample("i", None, None), "timeout"),
    ]


class TestAggregate(unittest.TestCase):
    def test_empty_input_gives_zeroed_report(self) -> None:
        report = aggregate([])
        self.assertTrue(report.overall.is_zero)
        self.assertEqual({}, dict(report.per_cwe))
        self.assertIsNone(report.precision)
        self.assertIsNone(report.recall)
        self.assertIsNone(report.line_accuracy)
        self.assertIsNone(report.overall.f1)

    def test_bookkeeping(self) -> None:
        report = aggregate(_verdicts())

        c125 = report.cwe("CWE-125")
        self.assertEqual(3, c125.true_positives)
        self.assertEqual(2, c125.line_scored_count)
        self.assertEqual(1, c125.line_accurate_count)
        self.assertEqual(0.5, c125.line_accuracy)

        c416 = report.cwe("CWE-416")
        self.assertEqual(2, c416.false_negatives)
        self.assertEqual(0, c416.false_positives)

        self.assertEqual(1, report.cwe("CWE-787").false_positives)
        self.assertEqual(1, report.cwe("CWE-20").false_positives)
        self.assertEqual(1, report.cwe("CWE-190").inconclusive)

        o = report.overall
        self.assertEqual(3, o.true_positives)
        self.assertEqual(2, o.false_negatives)
        self.assertEqual(2, o.false_positives)
        self.assertEqual(1, o.true_negatives)
        self.assertEqual(2, o.inconclusive)
        self.assertEqual(2, o.line_scored_count)
        self.assertEqual(1, o.line_accurate_count)

    def test_buckets_are_created_lazily(self) -> None:
        report = aggregate(_verdicts())
        self.assertEqual(["CWE-20", "CWE-125", "CWE-190", "CWE-416", "CWE-787"], list(report.per_cwe))
        self.assertIsNone(report.cwe("CWE-79"))

    def test_order_independent(self) -> None:
        verdicts = _verdicts()
        expected = aggregate(verdicts)
        rng = random.Random(7)
        for _ in range(10):
            shuffled = list(verdicts)
            rng.shuffle(shuffled)
            self.assertEqual(expected, aggregate(shuffled))

    def test_derived_metrics_match_raw_counts(self) -> None:
        verdicts = _verdicts()
        report = aggregate(verdicts)
        o = report.overall
        self.assertAlmostEqual(o.true_positives / (o.true_positives + o.false_positives), report.precision)
        self.assertAlmostEqual(o.true_positives / (o.true_positives + o.false_negatives), report.recall)

        rebuilt = Report.from_dict(report.to_dict())
        self.assertEqual(report, rebuilt)
        self.assertEqual(aggregate(list(verdicts)).precision, rebuilt.precision)
        self.assertEqual(aggregate(list(verdicts)).recall, rebuilt.recall)

    def test_unknown_line_counts_for_recall_not_line_accuracy(self) -> None:
        v = match(_sample("c", "CWE-125", "unknown"), [Finding.create("CWE-125", 1)])
        report = aggregate([v])
        self.assertEqual(1.0, report.recall)
        self.assertEqual(0, report.overall.line_scored_count)
        self.assertIsNone(report.line_accuracy)

    def test_counts_add(self) -> None:
        a = CweCounts(true_positives=1, false_negatives=2)
        b = CweCounts(true_positives=3, inconclusive=1)
        self.assertEqual(CweCounts(true_positives=4, false_negatives=2, inconclusive=1), a + b)


if __name__ == "__main__":
    unittest.main()
