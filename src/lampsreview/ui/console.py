"""Rich-powered console output for lampsreview."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from lampsreview import __version__
from lampsreview.graph.models import GraphNode
from lampsreview.models import Finding, Severity
from lampsreview.review.models import PassResult

SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
    Severity.HINT: "dim",
}


class Console:
    """Terminal output for lampsreview using Rich."""

    def __init__(self, console: RichConsole | None = None) -> None:
        self.console = console or RichConsole()

    def banner(self) -> None:
        self.console.print(
            Panel(
                f"[bold cyan]lampsreview[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]Multi-pass AI code review[/dim]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def markdown(self, text: str) -> None:
        """Render markdown text."""
        self.console.print(Markdown(text))

    def show_findings(self, findings: list[Finding]) -> None:
        """Findings table, most severe first."""
        if not findings:
            self.success("No findings")
            return

        table = Table(title=f"Findings ({len(findings)})", border_style="cyan")
        table.add_column("Severity", style="bold")
        table.add_column("Rule")
        table.add_column("Location", style="cyan")
        table.add_column("Message")

        for f in sorted(findings, key=lambda f: -f.severity.rank):
            style = SEVERITY_STYLES[f.severity]
            location = f"{f.file}:{f.line}" if f.line else f.file or "-"
            table.add_row(f"[{style}]{f.severity.value}[/{style}]", f.rule_id, location, f.message)

        self.console.print(table)

    def show_pass_results(self, results: list[PassResult]) -> None:
        """Per-pass inclusion and finding counts."""
        table = Table(title="Review Passes", border_style="cyan")
        table.add_column("Pass", style="bold")
        table.add_column("Files", justify="right")
        table.add_column("Sliced", justify="right")
        table.add_column("~Tokens", justify="right", style="cyan")
        table.add_column("Findings", justify="right")
        table.add_column("Status")

        for r in results:
            if r.error:
                status = "[red]failed[/red]"
            elif r.skipped:
                status = "[dim]skipped[/dim]"
            else:
                status = "[green]ok[/green]"
            table.add_row(
                r.pass_type.value,
                str(len(r.files)),
                str(sum(1 for f in r.files if f.sliced)),
                f"{r.token_estimate:,}",
                str(len(r.findings)),
                status,
            )

        self.console.print(table)

    def show_ranking(self, nodes: list[GraphNode]) -> None:
        """Files by review priority."""
        table = Table(title="File Priority", border_style="cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("File", style="bold")
        table.add_column("Category")
        table.add_column("Priority", justify="right", style="cyan")
        table.add_column("Imported by", justify="right")
        table.add_column("Imports", justify="right")

        for i, node in enumerate(nodes, start=1):
            table.add_row(
                str(i),
                node.path,
                node.category.value,
                str(node.priority or 0),
                str(len(node.imported_by)),
                str(len(node.imports)),
            )

        self.console.print(table)

    def show_stats(self, stats: dict) -> None:
        """Display graph statistics in a table."""
        table = Table(title="Dependency Graph", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")

        table.add_row("Files", str(stats.get("files", 0)))
        table.add_row("Resolved imports", str(stats.get("edges", 0)))
        table.add_row("Isolated files", str(stats.get("isolated", 0)))

        categories = stats.get("categories", {})
        if categories:
            table.add_section()
            for kind, count in sorted(categories.items(), key=lambda x: -x[1]):
                table.add_row(f"  {kind}", str(count))

        self.console.print(table)

    def show_health(self, score: int, by_severity: dict[str, int]) -> None:
        color = "green" if score >= 80 else "yellow" if score >= 50 else "red"
        counts = ", ".join(f"{count} {name}" for name, count in by_severity.items() if count)
        self.console.print(
            Panel(
                f"[bold]Health score:[/bold] [{color}]{score}/100[/{color}]\n"
                f"[bold]Findings:[/bold] {counts or 'none'}",
                title="[bold]Summary[/bold]",
                border_style=color,
            )
        )
