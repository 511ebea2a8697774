"""
Team Analytics Report — console summary of coordination effectiveness.

Reads sessions and consensus rounds for a time window and prints the
rollup, per-role participation and a short list of performance insights.

Usage:
    python -m team_consensus.report
    python -m team_consensus.report --time-range 30d
    python -m team_consensus.report --database-url postgresql+psycopg2://...
"""

from __future__ import annotations

import argparse
import sys

from rich.console import Console
from rich.table import Table

from team_consensus.config import settings
from team_consensus.coordination.schema import TeamAnalytics
from team_consensus.coordination.service import TeamCoordinationService

console = Console()

LOW_CONSENSUS_RATE = 70.0
SLOW_CONSENSUS_MS = 10_000
LOW_COMPLETION_SHARE = 0.8


def performance_insights(analytics: TeamAnalytics) -> list[str]:
    """Warnings derived from the rollup; empty when the team is performing well."""
    insights = []
    if float(analytics.consensus_rate) < LOW_CONSENSUS_RATE:
        insights.append("Low consensus rate - consider improving communication protocols")
    if analytics.average_consensus_time > SLOW_CONSENSUS_MS:
        insights.append("Slow consensus building - optimize decision-making processes")
    if analytics.completed_sessions < analytics.total_sessions * LOW_COMPLETION_SHARE:
        insights.append("High session abandonment - review project planning")
    return insights


def render_analytics(analytics: TeamAnalytics, out: Console = console) -> None:
    """Print the rollup, participation table and insights."""
    out.print(f"\n[bold blue]═══ Team Performance Summary ({analytics.time_range}) ═══[/bold blue]\n")
    out.print(f"  Total team sessions:    [bold]{analytics.total_sessions}[/bold]")
    out.print(f"  Completed sessions:     [bold]{analytics.completed_sessions}[/bold]")
    out.print(f"  Completion rate:        {analytics.completion_rate:.1f}%")
    out.print(f"  Consensus rate:         {analytics.consensus_rate}%")
    out.print(f"  Average consensus time: {analytics.average_consensus_time}ms")

    table = Table(title="Agent Participation", show_lines=False)
    table.add_column("Role", style="cyan", width=16)
    table.add_column("Sessions", style="green", justify="right")
    for role, count in sorted(analytics.agent_participation.items()):
        table.add_row(role, str(count))
    out.print(table)

    insights = performance_insights(analytics)
    if insights:
        for insight in insights:
            out.print(f"  [yellow]⚠ {insight}[/yellow]")
    else:
        out.print("  [bold green]✓ Team coordination system performing well[/bold green]")
    out.print()


def run_report(database_url: str, time_range: str = "7d") -> bool:
    """
    Compute and print team analytics.

    Returns:
        True if the analytics were computed, False otherwise.
    """
    service = TeamCoordinationService.from_url(database_url)
    result = service.get_team_analytics(time_range)
    if not result.success:
        console.print(f"[bold red]✗ Analytics failed:[/bold red] {result.error}")
        return False

    render_analytics(TeamAnalytics.model_validate(result.data["analytics"]))
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Team Consensus analytics report")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy connection string (defaults to .env settings)",
    )
    parser.add_argument(
        "--time-range",
        default="7d",
        help="7d, 30d, or any other value for all time",
    )
    args = parser.parse_args()

    ok = run_report(args.database_url or settings.database_url, args.time_range)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
