"""
Health check aggregation — connectivity probe for the two backends.

Checks:
    • Database connectivity (SELECT 1 on the application connection)
    • Cache connectivity (Redis PING)

Used by the `health` command; suitable for cron wrappers and container
liveness checks that only look at the exit code.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

import redis
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    name: str
    status: HealthStatus = HealthStatus.HEALTHY
    latency_ms: float = 0.0
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            d["message"] = self.message
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class HealthReport:
    status: HealthStatus = HealthStatus.HEALTHY
    version: str = ""
    environment: str = ""
    timestamp: str = ""
    components: List[ComponentHealth] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "timestamp": self.timestamp or datetime.now(timezone.utc).isoformat(),
            "components": [c.to_dict() for c in self.components],
        }


def check_database(conn: Connection) -> ComponentHealth:
    """Check relational database connectivity."""
    comp = ComponentHealth(name="database")
    start = time.monotonic()
    # leave a caller's open transaction alone, end the one the probe starts
    owns_transaction = not conn.in_transaction()
    try:
        conn.execute(text("SELECT 1")).scalar()
        comp.message = "Connection available"
        comp.details = {"dialect": conn.dialect.name}
    except SQLAlchemyError as e:
        comp.status = HealthStatus.UNHEALTHY
        comp.message = str(e)
    finally:
        if owns_transaction and conn.in_transaction():
            conn.rollback()
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


def check_redis(client: redis.Redis) -> ComponentHealth:
    """Check Redis connectivity."""
    comp = ComponentHealth(name="redis")
    start = time.monotonic()
    try:
        client.ping()
        comp.message = "Cache available"
    except redis.RedisError as e:
        comp.status = HealthStatus.UNHEALTHY
        comp.message = str(e)
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


def run_health_check(
    conn: Connection,
    client: redis.Redis,
    *,
    version: str = "",
    environment: str = "",
) -> HealthReport:
    """Run all health checks and aggregate into a report."""
    report = HealthReport(
        version=version,
        environment=environment,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    report.components.append(check_database(conn))
    report.components.append(check_redis(client))

    if any(c.status == HealthStatus.UNHEALTHY for c in report.components):
        report.status = HealthStatus.UNHEALTHY
        logger.warning(
            "Health check failed: %s",
            ", ".join(c.name for c in report.components if c.status == HealthStatus.UNHEALTHY),
        )
    return report
