"""Rubric parsing, outcome calculation and standings."""
