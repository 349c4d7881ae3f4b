import threading
import time
import unittest


from tools.detectors import CallableDetector, DetectorAdapter
from vuln_benchmark.domain import Finding, LineRef, Sample
from vuln_benchmark.errors import DetectorUnavailable

SRC = "int f(int *a, int i)\n{\n\n  // bounds?\n  return a[i];\n}\n"


def _sample() -> Sample:
    return Sample(
        sample_id="s1",
        source_text=SRC,
        ground_truth_cwe="CWE-125",
        ground_truth_line=LineRef.known(5),
    )


class _Flaky:
    def __init__(self, failures: int, answer=None) -> None:
        self.failures = failures
        self.calls = 0
        self.seen = []
        self.answer = answer if answer is not None else [{"cwe": "CWE-125", "line": 5}]

    def __call__(self, text: str):
        self.calls += 1
        self.seen.append(text)
        if self.calls <= self.failures:
            raise DetectorUnavailable("HTTP 503", detector="flaky")
        return self.answer


class TestDetectorAdapter(unittest.TestCase):
    def test_run_normalizes_findings(self) -> None:
        adapter = DetectorAdapter(CallableDetector(_Flaky(0)), backoff_seconds=0)
        self.assertEqual([Finding(cwe="CWE-125", line=5)], adapter.run(_sample()))

    def test_strips_comments_without_touching_the_sample(self) -> None:
        fn = _Flaky(0)
        sample = _sample()
        DetectorAdapter(CallableDetector(fn), backoff_seconds=0).run(sample)
        self.assertNotIn("bounds?", fn.seen[0])
        self.assertEqual(SRC.count("\n"), fn.seen[0].count("\n"))
        self.assertEqual(SRC, sample.source_text)

    def test_comment_stripping_can_be_disabled(self) -> None:
        fn = _Flaky(0)
        DetectorAdapter(CallableDetector(fn), strip_comments=False).run(_sample())
        self.assertEqual(SRC, fn.seen[0])

    def test_blank_line_removal_maps_lines_back(self) -> None:
        # Compacted text: the return statement is line 3 ("{" line 2, blank and
        # comment-only lines removed).
        fn = _Flaky(0, answer=[{"cwe": "CWE-125", "line": 3}])
        adapter = DetectorAdapter(CallableDetector(fn), drop_blank_lines=True)
        findings = adapter.run(_sample())
        self.assertEqual("return a[i];", fn.seen[0].splitlines()[2].strip())
        self.assertEqual(5, findings[0].line)

    def test_retries_then_succeeds(self) -> None:
        fn = _Flaky(2)
        adapter = DetectorAdapter(CallableDetector(fn), retry_attempts=3, backoff_seconds=0)
        with self.assertLogs("tools.detectors.adapter", level="WARNING"):
            findings = adapter.run(_sample())
        self.assertEqual(3, fn.calls)
        self.assertEqual("CWE-125", findings[0].cwe)

    def test_gives_up_after_bounded_attempts(self) -> None:
        fn = _Flaky(10)
        adapter = DetectorAdapter(CallableDetector(fn), retry_attempts=3, backoff_seconds=0)
        with self.assertRaises(DetectorUnavailable) as ctx:
            adapter.run(_sample())
        self.assertEqual(3, fn.calls)
        self.assertEqual(3, ctx.exception.attempts)

    def test_other_errors_are_not_retried(self) -> None:
        calls = []

        def boom(text):
            calls.append(text)
            raise RuntimeError("bug in detector glue")

        adapter = DetectorAdapter(CallableDetector(boom), retry_attempts=3, backoff_seconds=0)
        with self.assertRaises(RuntimeError):
            adapter.run(_sample())
        self.assertEqual(1, len(calls))

    def test_unusable_output_is_detector_unavailable(self) -> None:
        adapter = DetectorAdapter(CallableDetector(lambda t: 3.5), retry_attempts=1)
        with self.assertRaises(DetectorUnavailable):
            adapter.run(_sample())

    def test_cancel_event_stops_retrying(self) -> None:
        fn = _Flaky(10)
        stop = threading.Event()
        stop.set()
        adapter = DetectorAdapter(CallableDetector(fn), retry_attempts=5, backoff_seconds=0)
        with self.assertRaises(DetectorUnavailable):
            adapter.run(_sample(), cancel_event=stop)
        self.assertEqual(1, fn.calls)

    def test_cancel_during_backoff_wakes_the_worker(self) -> None:
        fn = _Flaky(10)
        stop = threading.Event()
        adapter = DetectorAdapter(
            CallableDetector(fn), retry_attempts=5, backoff_seconds=3, backoff_max_seconds=3
        )
        timer = threading.Timer(0.2, stop.set)
        timer.start()
        try:
            t0 = time.monotonic()
            with self.assertRaises(DetectorUnavailable) as ctx:
                adapter.run(_sample(), cancel_event=stop)
            elapsed = time.monotonic() - t0
        finally:
            timer.cancel()

        self.assertLess(elapsed, 1.0)
        self.assertEqual(1, fn.calls)
        self.assertEqual(1, ctx.exception.attempts)

    def test_serialize_calls(self) -> None:
        active = []
        peak = []
        lock = threading.Lock()

        def slow(text):
            with lock:
                active.append(1)
                peak.append(len(active))
            time.sleep(0.02)
            with lock:
                active.pop()
            return []

        adapter = DetectorAdapter(CallableDetector(slow), serialize_calls=True)
        threads = [threading.Thread(target=adapter.run, args=(_sample(),)) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(1, max(peak))

    def test_rejects_zero_attempts(self) -> None:
        with self.assertRaises(ValueError):
            DetectorAdapter(CallableDetector(lambda t: []), retry_attempts=0)


if __name__ == "__main__":
    unittest.main()
