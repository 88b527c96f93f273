"""Hybrid retrieval and multi-stage scoring engine for long-term memories."""

__version__ = "0.1.0"
