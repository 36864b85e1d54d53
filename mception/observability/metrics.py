"""Prometheus metrics for MCeption.

Counters for configuration mutations and audit log write failures.
"""

from prometheus_client import Counter

CONFIG_MUTATIONS = Counter(
    "mception_config_mutations_total",
    "Total number of configuration mutations attempted",
    labelnames=["operation", "status"],
)

AUDIT_WRITE_FAILURES = Counter(
    "mception_audit_write_failures_total",
    "Total number of audit log entries that could not be written",
    labelnames=["action", "path"],
)


def record_mutation(operation: str, status: str) -> None:
    """Record a configuration mutation outcome.

    Args:
        operation: Service operation name (create_leaf_mcp, ...)
        status: "success" or "error"
    """
    CONFIG_MUTATIONS.labels(operation=operation, status=status).inc()


def record_audit_failure(action: str, path: str) -> None:
    """Record an audit append failure on the read or write path."""
    AUDIT_WRITE_FAILURES.labels(action=action, path=path).inc()
