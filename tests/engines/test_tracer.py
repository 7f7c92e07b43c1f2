"""Tests for the engine tracer (resale_engines/tracer.py)."""

from resale_engines.tracer import compute_input_fingerprint, traced_engine
from tests.builders import make_contract


@traced_engine("demo", "2.1", fingerprint_fields=("x", "contract"))
def _demo(x, contract=None, noise=0):
    return x * 2


class TestTracedEngine:

    def test_returns_wrapped_result(self):
        assert _demo(21) == 42
        assert _demo.__name__ == "_demo"

    def test_trace_record(self, captured_logs):
        _demo(1, contract=make_contract())
        trace = [r for r in captured_logs() if r["message"] == "RESALE_ENGINE_TRACE"][-1]
        assert trace["trace_type"] == "RESALE_ENGINE_TRACE"
        assert trace["engine_name"] == "demo"
        assert trace["engine_version"] == "2.1"
        assert "duration_ms" in trace
        assert trace["logger"] == "resale.engines.tracer"
        assert trace["function"] == "_demo"

    def test_fingerprint_ignores_unlisted_arguments(self, captured_logs):
        _demo(1, noise=1)
        _demo(1, noise=2)
        traces = [r for r in captured_logs() if r["message"] == "RESALE_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]

    def test_positional_and_keyword_fingerprint_alike(self, captured_logs):
        contract = make_contract()
        _demo(1, contract)
        _demo(x=1, contract=contract)
        traces = [r for r in captured_logs() if r["message"] == "RESALE_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]


class TestFingerprint:

    def test_deterministic(self):
        args = {"contract": make_contract(), "x": 1}
        assert compute_input_fingerprint(("x", "contract"), args) == \
            compute_input_fingerprint(("x", "contract"), dict(args))

    def test_differs_on_entity_change(self):
        a = compute_input_fingerprint(("c",), {"c": make_contract(total_cost=1)})
        b = compute_input_fingerprint(("c",), {"c": make_contract(total_cost=2)})
        assert a != b

    def test_missing_field_recorded_as_null(self):
        assert compute_input_fingerprint(("missing",), {}) == \
            compute_input_fingerprint(("missing",), {"missing": None})

    def test_sequence_order_matters(self):
        first, second = make_contract(id="a"), make_contract(id="b")
        assert compute_input_fingerprint(("rows",), {"rows": [first, second]}) != \
            compute_input_fingerprint(("rows",), {"rows": [second, first]})
