# MIT License
# Copyright (c) 2025 Hashborn

"""
Prometheus metrics for account validation, settlement and forwarding.

Counters are incremented where the outcome is decided, so they also count
work that was later rolled back by an enclosing revert.
"""

from prometheus_client import Counter, CollectorRegistry, generate_latest

# Create registry for metrics
metrics_registry = CollectorRegistry()

# ═══════════════════════════════════════════════════════════════════
# ACCOUNT METRICS
# ═══════════════════════════════════════════════════════════════════

validations_total = Counter(
    'minimalaccount_validations_total',
    'User operation signature validations by outcome',
    ['outcome'],
    registry=metrics_registry
)

prefund_paid_total = Counter(
    'minimalaccount_prefund_paid_total',
    'Total native units paid to the entry point as prefund',
    registry=metrics_registry
)

prefund_failures_total = Counter(
    'minimalaccount_prefund_failures_total',
    'Prefund transfers to the entry point that failed',
    registry=metrics_registry
)

forwarded_calls_total = Counter(
    'minimalaccount_forwarded_calls_total',
    'Calls forwarded by the account by status',
    ['status'],
    registry=metrics_registry
)

ownership_transfers_total = Counter(
    'minimalaccount_ownership_transfers_total',
    'Successful ownership transfers',
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# ENTRY POINT METRICS
# ═══════════════════════════════════════════════════════════════════

user_ops_total = Counter(
    'minimalaccount_user_ops_total',
    'User operations executed by the entry point by status',
    ['status'],
    registry=metrics_registry
)


def export_metrics() -> bytes:
    """Returns all metrics in Prometheus text exposition format."""
    return generate_latest(metrics_registry)
