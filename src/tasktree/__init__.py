"""Hierarchical task list: tree projection, actionable frontier, completion cascades."""

__version__ = "0.1.0"
