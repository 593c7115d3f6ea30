"""Scoring and analysis services."""
