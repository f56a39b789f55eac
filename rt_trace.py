"""
Request-scoped tracing for POI discovery and highway detection.

A TraceContext collects, for one discover_pois() or compare call:
  - stage timings (admin_context, highway_search, poi_search, scoring)
  - every outbound HTTP call (service, endpoint, latency, HTTP status and
    provider status such as Google "ZERO_RESULTS"), tagged with the stage
    that made it
and logs one summary line at the end.

    ctx = TraceContext(trace_id=request_id)
    set_trace(ctx)
    with ctx.stage("highway_search"):
        ...
    ctx.log_summary()
    clear_trace()

One context is shared by the worker threads of a request (hand it over
with run_with_trace()), so the *current stage* is tracked per thread:
concurrent stages each get their own API calls attributed to them.
"""

import logging
import threading
import time
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class APICallRecord:
    service: str          # "overpass" | "google_maps" | "google_roads" | "nominatim"
    endpoint: str         # e.g. "highways_r500", "places_nearby"
    elapsed_ms: int
    status_code: int      # 0 when no response arrived
    provider_status: str = ""
    retried: bool = False
    stage: str = ""


@dataclass
class StageRecord:
    stage_name: str
    start_ts: float = 0.0
    end_ts: float = 0.0
    elapsed_ms: int = 0
    api_calls_made: int = 0
    error_class: str = ""
    error_message: str = ""

    @property
    def failed(self) -> bool:
        return bool(self.error_class)


@dataclass
class TraceContext:
    trace_id: str
    request_start: float = field(default_factory=time.time)
    stages: List[StageRecord] = field(default_factory=list)
    api_calls: List[APICallRecord] = field(default_factory=list)
    scoring_version: str = ""
    _local: threading.local = field(
        default_factory=threading.local, repr=False, compare=False,
    )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @property
    def current_stage(self) -> str:
        """Stage running in the calling thread ("" outside any stage)."""
        return getattr(self._local, "stage", "")

    def start_stage(self, name: str):
        self._local.stage = name

    def end_stage(self):
        self._local.stage = ""

    @contextmanager
    def stage(self, name: str):
        """Time the enclosed block as *name*; failures are recorded and re-raised."""
        outer = self.current_stage
        self.start_stage(name)
        t0 = time.time()
        try:
            yield
        except Exception as exc:
            self._local.stage = outer
            self.record_stage(
                name, t0, time.time(),
                error_class=type(exc).__name__,
                error_message=str(exc)[:200],
            )
            raise
        self._local.stage = outer
        self.record_stage(name, t0, time.time())

    def record_stage(
        self,
        stage_name: str,
        start_ts: float,
        end_ts: float,
        error_class: str = "",
        error_message: str = "",
    ):
        rec = StageRecord(
            stage_name=stage_name,
            start_ts=start_ts,
            end_ts=end_ts,
            elapsed_ms=int((end_ts - start_ts) * 1000),
            api_calls_made=sum(1 for c in self.api_calls if c.stage == stage_name),
            error_class=error_class,
            error_message=error_message,
        )
        self.stages.append(rec)

        if rec.failed:
            logger.info(
                "  [stage] trace=%s %s ERR %dms api_calls=%d err=%s: %s",
                self.trace_id, stage_name, rec.elapsed_ms, rec.api_calls_made,
                error_class, error_message,
            )
        else:
            logger.info(
                "  [stage] trace=%s %s OK %dms api_calls=%d",
                self.trace_id, stage_name, rec.elapsed_ms, rec.api_calls_made,
            )

    # ------------------------------------------------------------------
    # API calls
    # ------------------------------------------------------------------

    def record_api_call(
        self,
        service: str,
        endpoint: str,
        elapsed_ms: int,
        status_code: int,
        provider_status: str = "",
        retried: bool = False,
    ):
        stage = self.current_stage
        self.api_calls.append(APICallRecord(
            service=service,
            endpoint=endpoint,
            elapsed_ms=elapsed_ms,
            status_code=status_code,
            provider_status=provider_status,
            retried=retried,
            stage=stage,
        ))
        logger.info(
            "  [api] trace=%s stage=%s %s/%s %dms http=%d provider=%s",
            self.trace_id, stage or "-", service, endpoint,
            elapsed_ms, status_code, provider_status or "-",
        )

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _outcome(self) -> str:
        if not self.stages:
            return "empty"
        failed = sum(1 for s in self.stages if s.failed)
        if failed == 0:
            return "success"
        if failed == len(self.stages):
            return "error"
        return "partial"

    def summary_dict(self) -> Dict[str, Any]:
        failed = sum(1 for s in self.stages if s.failed)
        summary = {
            "trace_id": self.trace_id,
            "total_elapsed_ms": int((time.time() - self.request_start) * 1000),
            "total_api_calls": len(self.api_calls),
            "calls_by_service": dict(Counter(c.service for c in self.api_calls)),
            "stages_completed": len(self.stages) - failed,
            "stages_errored": failed,
            "final_outcome": self._outcome(),
        }
        if self.scoring_version:
            summary["scoring_version"] = self.scoring_version
        return summary

    def log_summary(self):
        s = self.summary_dict()
        by_service = ",".join(f"{k}={v}" for k, v in sorted(s["calls_by_service"].items()))
        logger.info(
            "[trace-summary] trace=%s outcome=%s total_ms=%d api_calls=%d (%s) "
            "stages=%d/%d",
            s["trace_id"], s["final_outcome"], s["total_elapsed_ms"],
            s["total_api_calls"], by_service or "none",
            s["stages_completed"], s["stages_completed"] + s["stages_errored"],
        )

    def stages_to_list(self) -> List[Dict[str, Any]]:
        return [
            {
                "stage": s.stage_name,
                "elapsed_ms": s.elapsed_ms,
                "api_calls": s.api_calls_made,
                "error": f"{s.error_class}: {s.error_message}" if s.failed else None,
            }
            for s in self.stages
        ]


# =============================================================================
# Per-thread active context
# =============================================================================

_active = threading.local()


def get_trace() -> Optional[TraceContext]:
    return getattr(_active, "ctx", None)


def set_trace(ctx: Optional[TraceContext]):
    _active.ctx = ctx


def clear_trace():
    _active.ctx = None


def run_with_trace(parent: Optional[TraceContext], fn: Callable, *args, **kwargs):
    """Run *fn* in a worker thread under the submitting thread's trace."""
    set_trace(parent)
    try:
        return fn(*args, **kwargs)
    finally:
        clear_trace()
