"""Normalization of registry values, metric values and date keys."""
