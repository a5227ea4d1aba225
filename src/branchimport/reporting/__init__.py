"""Import report construction and rendering."""

from branchimport.reporting.console import ConsoleReporter
from branchimport.reporting.core import (
    Badge,
    BadgeVariant,
    Classification,
    Report,
    ReportFormatter,
)

__all__ = [
    "Badge",
    "BadgeVariant",
    "Classification",
    "ConsoleReporter",
    "Report",
    "ReportFormatter",
]
