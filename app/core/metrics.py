"""
Prometheus metrics exported on /api/v1/metrics.
"""

from prometheus_client import Counter

INTERACTION_CHECKS = Counter(
    "medinfo_interaction_checks_total",
    "Combination checks served",
    ["channel", "cache"]
)

INTERACTIONS_FOUND = Counter(
    "medinfo_interactions_found_total",
    "Interaction pairs returned by combination checks",
    ["severity"]
)

MEDICATION_LOGS = Counter(
    "medinfo_medication_logs_total",
    "Adherence log entries recorded",
    ["status"]
)


def record_check(channel: str, interactions: list, cached: bool = False) -> None:
    """Count one combination check and the severities it returned."""
    INTERACTION_CHECKS.labels(channel=channel, cache="hit" if cached else "miss").inc()
    for interaction in interactions:
        severity = interaction["severity"] if isinstance(interaction, dict) else interaction.severity
        INTERACTIONS_FOUND.labels(severity=getattr(severity, "value", severity)).inc()
