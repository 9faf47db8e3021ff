"""Event log for cache checks (JSONL, opt-out via CORECACHE_TELEMETRY)."""

from __future__ import annotations

import json
import os
import time
from collections import Counter
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from corecache.resources import validator_for
from corecache.settings import RuntimeSettings

TELEMETRY_ENV = "CORECACHE_TELEMETRY"
TELEMETRY_SCHEMA = "telemetry.schema.json"
LEVELS = ("info", "warn", "error")

_DISABLE_VALUES = {"0", "false", "no", "off"}


def telemetry_enabled() -> bool:
    return os.getenv(TELEMETRY_ENV, "1").strip().lower() not in _DISABLE_VALUES


def record_event(settings: RuntimeSettings, event: str, payload: dict[str, Any] | None = None, **extra: Any) -> None:
    record_structured_event(settings, event, payload=payload, **extra)


def record_structured_event(
    settings: RuntimeSettings,
    event: str,
    *,
    payload: dict[str, Any] | None = None,
    level: str = "info",
    status: str | None = None,
    component: str | None = None,
    correlation_id: str | None = None,
    duration_ms: float | None = None,
) -> None:
    """Append one event to ``settings.telemetry_log``.

    Records are checked against ``telemetry.schema.json`` before they are
    written; an unknown ``level`` raises ``ValueError``.
    """
    if not telemetry_enabled():
        return
    if level not in LEVELS:
        raise ValueError(f"telemetry level must be one of {', '.join(LEVELS)}, got '{level}'")
    optional = {
        "status": status,
        "component": component,
        "correlationId": correlation_id,
        "durationMs": round(duration_ms, 3) if duration_ms is not None else None,
    }
    record: dict[str, Any] = {"ts": time.time(), "event": event, "payload": dict(payload or {}), "level": level}
    record.update({key: value for key, value in optional.items() if value is not None and value != ""})
    validator_for(TELEMETRY_SCHEMA).validate(record)
    _append(settings, record)


def _append(settings: RuntimeSettings, record: dict[str, Any]) -> None:
    log_path = settings.telemetry_log
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")


@contextmanager
def timed_event(
    settings: RuntimeSettings,
    event: str,
    payload: dict[str, Any],
    *,
    component: str | None = None,
) -> Iterator[dict[str, Any]]:
    """Record ``event`` once the block finishes, with its duration.

    The block fills ``payload`` (a ``status`` key is lifted into the record).
    When the block raises, the event is logged at ``error`` level with the
    exception type and the exception propagates.
    """
    started = time.perf_counter()
    try:
        yield payload
    except Exception as exc:
        payload["error"] = type(exc).__name__
        record_structured_event(
            settings,
            event,
            payload=payload,
            level="error",
            status="error",
            component=component,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        raise
    record_structured_event(
        settings,
        event,
        payload=payload,
        status=payload.get("status"),
        component=component,
        duration_ms=(time.perf_counter() - started) * 1000,
    )


def iter_events(settings: RuntimeSettings) -> Iterator[dict[str, Any]]:
    """Yield logged events in order; blank and truncated lines are skipped."""
    log_path = settings.telemetry_log
    if not log_path.exists():
        return
    with log_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            if not line.strip():
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(event, dict):
                yield event


def summarize(events: Iterable[dict[str, Any]]) -> dict[str, Any]:
    by_event: Counter[str] = Counter()
    by_status: Counter[str] = Counter()
    by_component: Counter[str] = Counter()
    slowest: dict[str, float] = {}
    for evt in events:
        name = evt.get("event", "unknown")
        by_event[name] += 1
        by_status[evt.get("status", "unknown")] += 1
        if "component" in evt:
            by_component[evt["component"]] += 1
        duration = evt.get("durationMs")
        if isinstance(duration, (int, float)) and duration > slowest.get(name, -1.0):
            slowest[name] = duration
    return {
        "total": sum(by_event.values()),
        "by_event": dict(by_event),
        "by_status": dict(by_status),
        "by_component": dict(by_component),
        "slowest_ms": slowest,
    }


def clear(settings: RuntimeSettings) -> None:
    settings.telemetry_log.unlink(missing_ok=True)
