"""
Console and CSV Output for Scoring Results

Renders scored leads, breakdowns and recommendations with rich, and exports
batch results to CSV.
"""

import csv
import json
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .classifier import DISQUALIFIED, HOT, WARM
from .models import ScoredLead


console = Console()

CLASSIFICATION_STYLES = {
    HOT: '[bold green]',
    WARM: '[yellow]',
    DISQUALIFIED: '[red]',
}


def _styled(classification: Optional[str]) -> str:
    if not classification:
        return '-'
    return f"{CLASSIFICATION_STYLES.get(classification, '[dim]')}{classification}[/]"


def display_scores(scored: List[ScoredLead], limit: int = 20, out: Optional[Console] = None):
    """Display batch results in a formatted table."""
    out = out or console
    table = Table(title=f"Scored Leads ({min(limit, len(scored))} of {len(scored)})")

    table.add_column("Lead", style="cyan")
    table.add_column("Score", style="green", justify="right")
    table.add_column("Class")
    table.add_column("Demo", justify="right")
    table.add_column("Source", justify="right")
    table.add_column("Engage", justify="right")
    table.add_column("Decay", justify="right")
    table.add_column("Error", max_width=40)

    for item in scored[:limit]:
        if item.ok:
            r = item.result
            table.add_row(
                item.lead_id,
                str(r.total),
                _styled(r.classification),
                str(r.demographics),
                str(r.source_quality),
                str(r.engagement),
                str(r.decay),
                "",
            )
        else:
            label = "[red]incomplete[/]" if item.incomplete else "[red]error[/]"
            table.add_row(item.lead_id or "?", "-", label, "", "", "", "", item.error or "")

    out.print(table)


def display_breakdown(report: dict, out: Optional[Console] = None):
    """Render a scoring report (see LeadScoringEngine.scoring_report)."""
    out = out or console
    b = report['breakdown']
    out.print(Panel.fit(
        f"""[bold]Lead {report['lead_id']}[/bold]

[cyan]Demographics:[/cyan]   {b['demographics']}
[cyan]Source quality:[/cyan] {b['sourceQuality']}
[cyan]Engagement:[/cyan]     {b['engagement']}
[cyan]Decay:[/cyan]          {b['decay']}

[bold]Total:[/bold] {b['total']}  {_styled(report['classification'])}
[dim]Stored score: {report['current_score']}[/dim]""",
        title="Lead Score",
    ))


def display_recommendations(report: dict, out: Optional[Console] = None):
    """Render a recommendation report."""
    out = out or console
    recommendations = report['recommendations']
    if not recommendations:
        out.print(f"[green]No recommendations for lead {report['lead_id']}[/green]")
        return

    table = Table(title=f"Recommendations for {report['lead_id']}")
    table.add_column("#", justify="right")
    table.add_column("Action", style="cyan")
    table.add_column("Points", style="green", justify="right")
    table.add_column("Priority")

    for i, rec in enumerate(recommendations, 1):
        priority = rec['priority']
        color = '[bold red]' if priority == 'high' else '[yellow]'
        table.add_row(str(i), rec['action'], f"+{rec['potential_score_increase']}", f"{color}{priority}[/]")

    out.print(table)
    out.print(f"Potential increase: [bold]+{report['potential_score_increase']}[/bold] "
              f"(current score {report['current_score']})")


def export_csv(scored: List[ScoredLead], output_path: Path, out: Optional[Console] = None):
    """Export batch results to CSV."""
    out = out or console
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        'id', 'lead_score', 'classification', 'demographics', 'source_quality',
        'engagement', 'decay', 'last_calculated', 'error', 'incomplete',
    ]

    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for item in scored:
            row = {'id': item.lead_id, 'error': item.error or '', 'incomplete': item.incomplete}
            if item.ok:
                r = item.result
                row.update({
                    'lead_score': r.total,
                    'classification': r.classification,
                    'demographics': r.demographics,
                    'source_quality': r.source_quality,
                    'engagement': r.engagement,
                    'decay': r.decay,
                    'last_calculated': item.last_calculated.isoformat() if item.last_calculated else '',
                })
            writer.writerow(row)

    out.print(f"[green]Exported {len(scored)} results to {output_path}[/green]")


def to_json(data) -> str:
    return json.dumps(data, indent=2, default=str)
