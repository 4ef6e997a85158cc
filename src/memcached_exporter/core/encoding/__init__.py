"""Metric exposition encoders."""
