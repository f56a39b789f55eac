"""Unit tests for rt_trace.py: request-scoped tracing.

Covers stage recording, API call attribution (including concurrent
stages on one shared context), summary outcomes and hand-off of the
context into worker threads.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from rt_trace import (
    TraceContext,
    clear_trace,
    get_trace,
    run_with_trace,
    set_trace,
)


# =========================================================================
# Stage lifecycle
# =========================================================================

class TestStageRecording:
    def test_record_stage(self):
        ctx = TraceContext(trace_id="t-1")
        t0 = time.time()

        ctx.record_stage("admin_context", t0, t0 + 0.25)

        stage = ctx.stages[0]
        assert stage.stage_name == "admin_context"
        assert stage.elapsed_ms == 250
        assert not stage.failed

    def test_stage_context_manager(self):
        ctx = TraceContext(trace_id="t-1")

        with ctx.stage("highway_search"):
            assert ctx.current_stage == "highway_search"
            ctx.record_api_call("overpass", "highways_r100", 40, 200)

        assert ctx.current_stage == ""
        assert ctx.stages[0].api_calls_made == 1
        assert ctx.api_calls[0].stage == "highway_search"

    def test_stage_context_manager_records_failure(self):
        ctx = TraceContext(trace_id="t-1")

        with pytest.raises(KeyError):
            with ctx.stage("scoring"):
                raise KeyError("category")

        stage = ctx.stages[0]
        assert stage.failed
        assert stage.error_class == "KeyError"
        assert ctx.current_stage == ""

    def test_nested_stage_restores_outer(self):
        ctx = TraceContext(trace_id="t-1")
        with ctx.stage("outer"):
            with ctx.stage("inner"):
                pass
            assert ctx.current_stage == "outer"

    def test_calls_outside_stage_unattributed(self):
        ctx = TraceContext(trace_id="t-1")
        ctx.start_stage("poi_search")
        ctx.record_api_call("google_maps", "places_nearby", 80, 200, "OK")
        ctx.end_stage()
        ctx.record_api_call("nominatim", "reverse", 60, 200)

        assert [c.stage for c in ctx.api_calls] == ["poi_search", ""]

    def test_concurrent_stages_attributed_per_thread(self):
        ctx = TraceContext(trace_id="t-1")
        barrier = threading.Barrier(2)

        def work(stage_name, service, calls):
            with ctx.stage(stage_name):
                barrier.wait()
                for _ in range(calls):
                    ctx.record_api_call(service, "x", 1, 200)

        with ThreadPoolExecutor(max_workers=2) as pool:
            a = pool.submit(work, "admin_context", "nominatim", 1)
            b = pool.submit(work, "poi_search", "google_maps", 3)
            a.result()
            b.result()

        by_stage = {s.stage_name: s.api_calls_made for s in ctx.stages}
        assert by_stage == {"admin_context": 1, "poi_search": 3}


# =========================================================================
# Summary
# =========================================================================

class TestSummary:
    def _ctx(self, *failures):
        ctx = TraceContext(trace_id="t-1")
        t = time.time()
        for i, failed in enumerate(failures):
            ctx.record_stage(f"s{i}", t, t, error_class="ValueError" if failed else "")
        return ctx

    def test_success(self):
        ctx = self._ctx(False, False)
        ctx.record_api_call("google_maps", "places_nearby", 50, 200, "OK")
        ctx.record_api_call("google_maps", "reverse_geocode", 50, 200, "OK")
        ctx.record_api_call("overpass", "highways_r100", 50, 200)

        s = ctx.summary_dict()
        assert s["final_outcome"] == "success"
        assert s["stages_completed"] == 2
        assert s["total_api_calls"] == 3
        assert s["calls_by_service"] == {"google_maps": 2, "overpass": 1}

    @pytest.mark.parametrize("failures,outcome", [
        ((), "empty"),
        ((False, True), "partial"),
        ((True,), "error"),
        ((True, True), "error"),
    ])
    def test_outcomes(self, failures, outcome):
        assert self._ctx(*failures).summary_dict()["final_outcome"] == outcome

    def test_scoring_version_only_when_set(self):
        ctx = TraceContext(trace_id="t-1")
        assert "scoring_version" not in ctx.summary_dict()
        ctx.scoring_version = "1.0.0"
        assert ctx.summary_dict()["scoring_version"] == "1.0.0"

    def test_log_summary_does_not_raise(self):
        self._ctx(False).log_summary()

    def test_stages_to_list(self):
        ctx = TraceContext(trace_id="t-1")
        t = time.time()
        ctx.record_stage("admin_context", t, t + 0.1)
        ctx.record_stage("scoring", t, t, error_class="Timeout", error_message="slow")

        assert [s["error"] for s in ctx.stages_to_list()] == [None, "Timeout: slow"]


# =========================================================================
# Active context per thread
# =========================================================================

class TestActiveContext:
    def test_set_get_clear(self):
        ctx = TraceContext(trace_id="t-1")
        set_trace(ctx)
        assert get_trace() is ctx
        clear_trace()
        assert get_trace() is None

    def test_not_inherited_by_new_threads(self):
        set_trace(TraceContext(trace_id="main"))
        seen = []
        t = threading.Thread(target=lambda: seen.append(get_trace()))
        t.start()
        t.join()
        assert seen == [None]

    def test_run_with_trace_hands_over_and_clears(self):
        parent = TraceContext(trace_id="parent")

        def work():
            get_trace().record_api_call("overpass", "osm_pois", 10, 200)
            return get_trace().trace_id

        with ThreadPoolExecutor(max_workers=1) as pool:
            assert pool.submit(run_with_trace, parent, work).result() == "parent"
            # Same worker thread afterwards: nothing left behind
            assert pool.submit(get_trace).result() is None

        assert len(parent.api_calls) == 1
