"""Serving module - Prediction over trained models."""

from tabreg_core.serving.predictor import Predictor, PredictionResult

__all__ = ["Predictor", "PredictionResult"]
