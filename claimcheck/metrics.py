import logging
import threading
from collections import defaultdict, deque
from typing import Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

_MAX_SAMPLES = 10000

_request_count: Dict[str, int] = defaultdict(int)
_request_latency: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=_MAX_SAMPLES))
_request_errors: Dict[str, Dict[int, int]] = defaultdict(lambda: defaultdict(int))
_risk_scores: Deque[float] = deque(maxlen=_MAX_SAMPLES)
_alignment_confidence: Deque[float] = deque(maxlen=_MAX_SAMPLES)
_alignment_outcomes: Dict[str, int] = defaultdict(int)
_lock = threading.Lock()


def record_latency(endpoint: str, duration_sec: float) -> None:
    if not endpoint:
        return
    with _lock:
        _request_count[endpoint] += 1
        _request_latency[endpoint].append(duration_sec)


def record_error(endpoint: str, status_code: int) -> None:
    if status_code < 400:
        return
    with _lock:
        _request_errors[endpoint][status_code] += 1


def record_risk_score(score: float) -> None:
    with _lock:
        _risk_scores.append(score)


def record_alignment(overall: str, confidence: float) -> None:
    with _lock:
        _alignment_outcomes[overall] += 1
        _alignment_confidence.append(confidence)


def _percentile(sorted_arr: List[float], p: float) -> Optional[float]:
    if not sorted_arr:
        return None
    k = (len(sorted_arr) - 1) * p / 100.0
    f = int(k)
    c = min(f + 1, len(sorted_arr) - 1)
    return sorted_arr[f] + (k - f) * (sorted_arr[c] - sorted_arr[f])


def _distribution(samples) -> dict:
    s = sorted(samples)
    if not s:
        return {}
    return {"p50": _percentile(s, 50), "p95": _percentile(s, 95), "count": len(s)}


def get_metrics() -> dict:
    with _lock:
        out = {
            "request_count": dict(_request_count),
            "request_errors": {k: dict(v) for k, v in _request_errors.items()},
            "latency_seconds": {},
            "risk_score": _distribution(_risk_scores),
            "alignment_confidence": _distribution(_alignment_confidence),
            "alignment_outcomes": dict(_alignment_outcomes),
        }
        for endpoint, samples in _request_latency.items():
            if not samples:
                continue
            s = sorted(samples)
            out["latency_seconds"][endpoint] = {
                "p50": _percentile(s, 50),
                "p95": _percentile(s, 95),
                "p99": _percentile(s, 99),
                "count": len(s),
            }
    return out


def prometheus_export() -> str:
    lines = []
    with _lock:
        for endpoint, count in _request_count.items():
            lines.append(f'http_requests_total{{endpoint="{endpoint}"}} {count}')
        for endpoint, errs in _request_errors.items():
            for code, n in errs.items():
                lines.append(f'http_requests_errors_total{{endpoint="{endpoint}",status="{code}"}} {n}')
        for endpoint, samples in _request_latency.items():
            s = sorted(samples)
            for quantile in (50, 95):
                value = _percentile(s, quantile)
                if value is not None:
                    lines.append(
                        f'http_request_duration_seconds{{endpoint="{endpoint}",quantile="{quantile / 100}"}} {value}'
                    )
        for overall, n in _alignment_outcomes.items():
            lines.append(f'alignment_checks_total{{result="{overall}"}} {n}')
        if _risk_scores:
            lines.append(f"risk_score_mean {sum(_risk_scores) / len(_risk_scores)}")
    return "\n".join(lines) + "\n"
