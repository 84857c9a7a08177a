"""Metrics module - Regression error measures."""

from tabreg_core.metrics.regression import RegressionMetrics

__all__ = ["RegressionMetrics"]
