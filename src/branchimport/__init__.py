"""
Branchimport: Supplier Branch Feed Ingestion.

This package converts supplier branch/location feeds (OTA XML, PHP var_dump
text, JSON, CSV and spreadsheets) into one canonical branch schema,
validates every record and produces an aggregatable import report.
"""

from importlib.metadata import version

__version__ = version("branchimport")

__all__ = ["__version__"]
