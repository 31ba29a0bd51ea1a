"""Observability package exports."""

from explox.observability.metrics import GenerationMetrics, get_generation_metrics

__all__ = ["GenerationMetrics", "get_generation_metrics"]
