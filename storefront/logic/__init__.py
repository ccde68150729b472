"""Normalization, aggregation and presentation logic."""
