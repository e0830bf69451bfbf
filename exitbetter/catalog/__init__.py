"""Catalog snapshot loading."""

from .registry import CatalogSnapshot, parse_master_questions

__all__ = ["CatalogSnapshot", "parse_master_questions"]
