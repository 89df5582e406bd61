"""Shared domain models and enumerations."""
