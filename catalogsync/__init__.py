"""Relational IMDb catalog to document store normalization pipeline."""

__version__ = "0.1.0"
