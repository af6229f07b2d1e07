"""Liveness/readiness endpoint used by the load balancer and compose checks."""

import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger()


def _ping_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _ping_cache() -> None:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


PROBES: Dict[str, Callable[[], None]] = {
    "database": _ping_database,
    "cache": _ping_cache,
}


def _run_probe(name: str, probe: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        probe()
    except Exception:
        logger.exception("health_check.probe_failed", service=name)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    services = {name: _run_probe(name, probe) for name, probe in PROBES.items()}
    healthy = all(result["status"] == "up" for result in services.values())
    overall = "healthy" if healthy else "unhealthy"

    logger.info("health_check.completed", status=overall)

    return JsonResponse(
        {
            "status": overall,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
