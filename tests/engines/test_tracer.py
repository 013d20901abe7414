"""Tests for engine invocation tracing."""

from bookkeeping_engines.tracer import compute_input_fingerprint, traced_engine


@traced_engine("sample_engine", "2.1", fingerprint_fields=("date", "options"))
def _sample(date, entries, options=None):
    return len(entries)


class TestFingerprint:
    def test_deterministic(self):
        args = {"date": "2024-05-14", "options": {"b": 1, "a": 2}}
        assert compute_input_fingerprint(("date", "options"), args) == compute_input_fingerprint(
            ("date", "options"), {"options": {"a": 2, "b": 1}, "date": "2024-05-14"}
        )

    def test_differs_by_value(self):
        first = compute_input_fingerprint(("date",), {"date": "2024-05-14"})
        second = compute_input_fingerprint(("date",), {"date": "2024-05-15"})
        assert first != second
        assert len(first) == 16

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("date",), {}) == compute_input_fingerprint(
            ("date",), {"date": None}
        )


class TestTracedEngine:
    def test_result_unchanged(self):
        assert _sample("2024-05-14", [1, 2, 3]) == 3

    def test_trace_record(self, captured_logs):
        _sample("2024-05-14", [1], options={"x": 1})
        (trace,) = [r for r in captured_logs() if r["message"] == "BOOKKEEPING_ENGINE_TRACE"]

        assert trace["engine_name"] == "sample_engine"
        assert trace["engine_version"] == "2.1"
        assert trace["duration_ms"] >= 0
        assert trace["input_fingerprint"] == compute_input_fingerprint(
            ("date", "options"), {"date": "2024-05-14", "options": {"x": 1}}
        )

    def test_positional_and_keyword_fingerprint_match(self, captured_logs):
        _sample("2024-05-14", [], {"x": 1})
        _sample(date="2024-05-14", entries=[], options={"x": 1})
        traces = [r for r in captured_logs() if r["message"] == "BOOKKEEPING_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]
