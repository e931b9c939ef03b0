# MIT License
# Copyright (c) 2025 Hashborn

"""
Observability Module

Prometheus counters for account and entry point activity.
"""

from .metrics import metrics_registry, export_metrics

__all__ = ['metrics_registry', 'export_metrics']
