"""Spreadsheet project import: extraction, reconciliation and dispatch."""
