"""
Console reporter for import reports.

Renders a ``Report`` with Rich: a headline panel with count badges, a
summary table and the validation error table.
"""

from typing import ClassVar

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from branchimport.reporting.core import (
    BadgeVariant,
    Classification,
    Report,
    ReportFormatter,
)
from branchimport.validation.core import ValidationError


class ConsoleReporter:
    """Formats and displays import reports."""

    CLASSIFICATION_STYLES: ClassVar[dict[Classification, tuple[str, str]]] = {
        Classification.COMPLETE_SUCCESS: ("SUCCESS", "green"),
        Classification.PARTIAL_SUCCESS: ("PARTIAL", "yellow"),
        Classification.ALL_SKIPPED: ("SKIPPED", "yellow"),
        Classification.FAILURE: ("FAILED", "red"),
    }

    BADGE_STYLES: ClassVar[dict[BadgeVariant, str]] = {
        BadgeVariant.SUCCESS: "bold white on green",
        BadgeVariant.INFO: "bold white on blue",
        BadgeVariant.WARNING: "bold black on yellow",
        BadgeVariant.DANGER: "bold white on red",
    }

    def __init__(self, console: Console | None = None) -> None:
        """
        Initialize reporter.

        Args:
            console: Rich console for output. Creates new if not provided.
        """
        self.console = console or Console()

    def print_report(self, report: Report, *, validation_only: bool = False) -> None:
        """
        Print a full import report.

        Args:
            report: Report to display.
            validation_only: The run did not persist anything; show a
                validation headline instead of the import classification.
        """
        self.console.print()
        self._print_header(report, validation_only=validation_only)

        self.console.print()
        self._print_summary(report)

        if report.errors:
            self.console.print()
            self._print_errors(report.errors, imported=report.summary.persisted > 0)

    def _print_header(self, report: Report, *, validation_only: bool) -> None:
        if validation_only:
            ok = report.summary.invalid == 0 and report.summary.total > 0
            status_text, style = ("VALID", "green") if ok else ("INVALID", "red")
            message = ReportFormatter.validation_message(report.summary)
        else:
            status_text, style = self.CLASSIFICATION_STYLES[report.classification]
            message = report.message

        badges: list[Text | str] = []
        for badge in report.badges:
            if validation_only and badge.variant is not BadgeVariant.DANGER:
                continue
            badges.append(
                Text(f" {badge.count} {badge.label} ", style=self.BADGE_STYLES[badge.variant])
            )
            badges.append(" ")

        self.console.print(
            Panel.fit(
                Text.assemble(
                    Text(f"Import Summary [{status_text}]", style="bold"),
                    "\n",
                    Text(message, style=style),
                    *(["\n", *badges] if badges else []),
                ),
                border_style=style,
            )
        )

    def _print_summary(self, report: Report) -> None:
        summary = report.summary
        table = Table(show_header=True, header_style="bold")
        for label in ("Total", "Valid", "Invalid", "Imported", "Updated", "Skipped"):
            table.add_column(label, justify="right")
        table.add_row(
            str(summary.total),
            Text(str(summary.valid), style="green"),
            Text(str(summary.invalid), style="red" if summary.invalid else "dim"),
            str(summary.imported),
            str(summary.updated),
            Text(str(summary.skipped), style="yellow" if summary.skipped else "dim"),
        )
        self.console.print(table)

    def _print_errors(self, errors: tuple[ValidationError, ...], *, imported: bool) -> None:
        table = Table(
            title=f"Validation Errors ({len(errors)})",
            show_header=True,
            header_style="bold",
        )
        table.add_column("#", justify="right")
        table.add_column("Branch Code", style="cyan", no_wrap=True)
        table.add_column("Branch Name")
        table.add_column("Error Message", style="red")
        table.add_column("Missing/Invalid Fields")
        table.add_column("Missing Days", style="yellow")

        for error in errors:
            detail = error.error
            fields = Text()
            for name in detail.missing_fields:
                fields.append(f"{name} ", style="bold red")
            for problem in detail.invalid_fields:
                fields.append(f"{problem}\n", style="dark_orange")

            table.add_row(
                # 1-based for humans
                str(error.index + 1),
                error.branch_code or "-",
                error.branch_name or "-",
                detail.message,
                fields if fields.plain else "-",
                ", ".join(detail.missing_days) or "-",
            )

        self.console.print(table)
        if imported:
            self.console.print(
                "[yellow]Note: Branches were imported despite validation issues.[/yellow]"
            )
