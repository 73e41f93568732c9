"""Console reporter with colored terminal output using Rich."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from agrisk.scoring.models import Assessment, AssessmentKind, LevelStatistics, RiskLevel

LEVEL_COLORS: dict[RiskLevel, str] = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold red",
}

KIND_TITLES: dict[AssessmentKind, str] = {
    AssessmentKind.PAYMENT_RISK: "Payment Risk",
    AssessmentKind.ROUTE_ANOMALY: "Route Anomaly",
}


def _score_style(score: float) -> str:
    return "red" if score >= 0.7 else "yellow" if score >= 0.4 else "green"


class ConsoleReporter:
    """Renders assessments to the terminal with color-coded output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render(self, assessment: Assessment) -> None:
        """Print one assessment: summary panel, factor table, recommendations."""
        self._print_header(assessment)
        self._print_factors(assessment)
        self._print_recommendations(assessment)

    def _print_header(self, assessment: Assessment) -> None:
        color = LEVEL_COLORS[assessment.level]
        text = (
            f"[{color}]Score: {assessment.total_score:.3f}[/{color}]\n"
            f"[{color}]Level: {assessment.level.value.upper()}[/{color}]\n"
            f"Subject: {assessment.subject_id}\n"
            f"As of: {assessment.created_at.strftime('%Y-%m-%d %H:%M')}"
        )
        if assessment.is_anomalous:
            text += "\n[bold]Anomalous behavior detected[/bold]"
        if assessment.error:
            text += "\n[bold red]Assessment failed; fallback score used[/bold red]"

        self.console.print(Panel(
            text,
            title=KIND_TITLES[assessment.kind],
            subtitle=f"Assessment {assessment.assessment_id or '-'}",
            border_style=color,
        ))
        self.console.print()

    def _print_factors(self, assessment: Assessment) -> None:
        if not assessment.factors:
            return

        table = Table(title="Factors")
        table.add_column("Factor", style="bold")
        table.add_column("Score", justify="right")
        table.add_column("Anomalous", justify="center")
        table.add_column("Reasons")

        for name, result in assessment.factors.items():
            style = _score_style(result.score)
            table.add_row(
                name.replace("_", " ").title(),
                f"[{style}]{result.score:.2f}[/{style}]",
                "yes" if result.is_anomalous else "",
                "; ".join(result.reasons) or "-",
            )

        self.console.print(table)
        self.console.print()

    def _print_recommendations(self, assessment: Assessment) -> None:
        if not assessment.recommendations:
            return

        self.console.print("[bold]Recommendations:[/bold]")
        for rec in assessment.recommendations:
            self.console.print(f"  - {rec}")
        self.console.print()

    def render_many(self, assessments: list[Assessment]) -> None:
        """Print a one-row-per-assessment listing, newest first."""
        if not assessments:
            self.console.print("[dim]No assessments found.[/dim]")
            return

        table = Table(title="Recent Assessments")
        table.add_column("Created", style="dim")
        table.add_column("Kind")
        table.add_column("Subject", style="bold")
        table.add_column("Score", justify="right")
        table.add_column("Level")
        table.add_column("Outcome")

        for a in assessments:
            color = LEVEL_COLORS[a.level]
            table.add_row(
                a.created_at.strftime("%Y-%m-%d %H:%M"),
                a.kind.value,
                a.subject_id,
                f"{a.total_score:.3f}",
                f"[{color}]{a.level.value}[/{color}]",
                a.outcome.value if a.outcome else "-",
            )

        self.console.print(table)

    def render_statistics(self, rows: list[LevelStatistics], window_days: int) -> None:
        """Print per-level counts, average scores and outcome tallies."""
        if not rows:
            self.console.print(f"[dim]No assessments in the last {window_days} days.[/dim]")
            return

        table = Table(title=f"Assessments, last {window_days} days")
        table.add_column("Level", style="bold")
        table.add_column("Count", justify="right")
        table.add_column("Avg Score", justify="right")
        table.add_column("Successful", justify="right")
        table.add_column("Failed", justify="right")

        for row in rows:
            color = LEVEL_COLORS[row.level]
            table.add_row(
                f"[{color}]{row.level.value}[/{color}]",
                str(row.count),
                f"{row.avg_score:.3f}",
                str(row.successful),
                str(row.failed),
            )

        self.console.print(table)
