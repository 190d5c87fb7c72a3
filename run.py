#!/usr/bin/env python3
"""
Lead Score Engine - Main Entry Point

Unified CLI for managing leads and running the scoring engine.

Usage:
    python run.py init
    python run.py import-csv leads.csv
    python run.py score <lead-id> --save
    python run.py recommend <lead-id>
    python run.py batch-score --all --workers 4
    python run.py stats
"""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress
from rich.table import Table

from lead_engine import __version__
from lead_engine.log import setup_logging
from lead_engine.scoring import report
from lead_engine.scoring.engine import LeadScoringEngine
from lead_engine.scoring.errors import LeadScoringError
from lead_engine.scoring.models import DECISION_ROLES, VALID_STATUSES
from lead_engine.scoring.weights import WeightTable, load_config
from lead_engine.utils.database import LeadDatabase
from lead_engine.utils.importer import load_leads_from_csv

PROJECT_ROOT = Path(__file__).parent

console = Console()


class AppContext:
    """Lazily built engine and database shared by all commands."""

    def __init__(self, config_path=None, db_path=None):
        self.config = load_config(config_path)
        self.db_path = db_path
        self._db = None
        self._weights = WeightTable.from_mapping(self.config.get('scoring'))

    @property
    def db(self) -> LeadDatabase:
        if self._db is None:
            path = self.db_path or self.config.get('database', {}).get('path')
            if path and not Path(path).is_absolute():
                path = PROJECT_ROOT / path
            self._db = LeadDatabase(Path(path) if path else None)
        return self._db

    def engine(self, max_workers=None) -> LeadScoringEngine:
        return LeadScoringEngine(weights=self._weights, max_workers=max_workers)


pass_app = click.make_pass_decorator(AppContext)


def _require_lead(app: AppContext, lead_id: str) -> dict:
    lead = app.db.get_lead(lead_id)
    if lead is None:
        console.print(f"[red]Lead not found: {lead_id}[/red]")
        raise click.Abort()
    return lead


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True, path_type=Path),
              help='Path to config YAML')
@click.option('--db', 'db_path', type=click.Path(path_type=Path), help='Path to SQLite database')
@click.option('--log-level', default=None, help='Logging level (DEBUG, INFO, WARNING)')
@click.pass_context
def cli(ctx, config_path, db_path, log_level):
    """Lead Score Engine

    Rule-based lead scoring, classification and recommendations.
    """
    try:
        app = AppContext(config_path, db_path)
    except LeadScoringError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise click.Abort()

    setup_logging(log_level or app.config.get('logging', {}).get('level', 'WARNING'), console=console)
    ctx.obj = app


# =============================================================================
# LEAD MANAGEMENT
# =============================================================================

@cli.command()
@click.option('--first-name', required=True)
@click.option('--last-name', required=True)
@click.option('--email', required=True)
@click.option('--company', 'company_name', required=True)
@click.option('--source', 'lead_source', required=True, help='Lead source, e.g. Referral')
@click.option('--role', 'role_in_decision', type=click.Choice(DECISION_ROLES), help='Role in decision')
@click.option('--industry')
@click.option('--size', 'company_size', type=int, help='Company size (employees)')
@click.option('--city')
@click.option('--state')
@click.option('--country')
@click.option('--status', type=click.Choice(VALID_STATUSES), default='New')
@click.option('--notes')
@pass_app
def add(app, **fields):
    """Add a single lead."""
    lead_id = app.db.add_lead({k: v for k, v in fields.items() if v is not None})
    if lead_id is None:
        console.print(f"[red]A lead with email {fields['email']} already exists[/red]")
        raise click.Abort()
    console.print(f"[green]Created lead {lead_id}[/green]")


@cli.command('import-csv')
@click.argument('csv_file', type=click.Path(exists=True, path_type=Path))
@pass_app
def import_csv(app, csv_file):
    """Import leads from a CSV file."""
    records = load_leads_from_csv(csv_file)
    created, skipped = 0, 0

    for record in records:
        try:
            lead_id = app.db.add_lead(record)
        except ValueError as e:
            console.print(f"[yellow]Skipping row: {e}[/yellow]")
            skipped += 1
            continue
        if lead_id is None:
            skipped += 1
        else:
            created += 1

    console.print(f"[green]Imported {created} leads[/green] ({skipped} skipped)")


@cli.command('list')
@click.option('--status', '-s', type=click.Choice(VALID_STATUSES))
@click.option('--source', 'lead_source')
@click.option('--industry')
@click.option('--search', '-q')
@click.option('--sort-by', default='created_at')
@click.option('--order', type=click.Choice(['asc', 'desc']), default='desc')
@click.option('--page', default=1)
@click.option('--per-page', default=20)
@pass_app
def list_leads(app, status, lead_source, industry, search, sort_by, order, page, per_page):
    """List leads."""
    result = app.db.list_leads(
        status=status, lead_source=lead_source, industry=industry, search=search,
        sort_by=sort_by, sort_order=order, page=page, per_page=per_page,
    )

    table = Table(title="Leads")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Company")
    table.add_column("Status", style="yellow")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Class")

    for lead in result['leads']:
        metadata = lead.get('scoring_metadata') or {}
        table.add_row(
            lead['id'],
            f"{lead['first_name']} {lead['last_name']}",
            lead['company_name'],
            lead['status'],
            str(lead.get('lead_score') or 0),
            metadata.get('classification', '-'),
        )

    console.print(table)
    p = result['pagination']
    console.print(f"Page {p['current_page']}/{max(p['total_pages'], 1)} ({p['total_items']} leads)")


@cli.command()
@click.argument('lead_id')
@pass_app
def show(app, lead_id):
    """Show a lead as JSON."""
    lead = _require_lead(app, lead_id)
    console.print_json(json.dumps(lead, default=str))


@cli.command()
@click.argument('lead_id')
@click.option('--set', 'assignments', multiple=True, metavar='FIELD=VALUE', help='Field to update')
@pass_app
def update(app, lead_id, assignments):
    """Update lead fields."""
    changes = {}
    for assignment in assignments:
        if '=' not in assignment:
            raise click.BadParameter(f"expected FIELD=VALUE, got {assignment}")
        key, value = assignment.split('=', 1)
        changes[key.strip()] = value if value != '' else None

    lead = app.db.update_lead(lead_id, changes)
    if lead is None:
        console.print(f"[red]Lead not found: {lead_id}[/red]")
        raise click.Abort()
    console.print(f"[green]Updated lead {lead_id}[/green]")


@cli.command()
@click.argument('lead_id')
@click.option('--hard', is_flag=True, help='Remove permanently instead of soft delete')
@pass_app
def delete(app, lead_id, hard):
    """Delete a lead."""
    deleted = app.db.hard_delete_lead(lead_id) if hard else app.db.delete_lead(lead_id)
    if not deleted:
        console.print(f"[red]Lead not found: {lead_id}[/red]")
        raise click.Abort()
    console.print(f"[green]Deleted lead {lead_id}[/green]")


@cli.command()
@click.argument('lead_id')
@pass_app
def convert(app, lead_id):
    """Mark a lead as converted."""
    if app.db.convert_lead(lead_id) is None:
        console.print(f"[red]Lead not found: {lead_id}[/red]")
        raise click.Abort()
    console.print(f"[green]Converted lead {lead_id}[/green]")


# =============================================================================
# SCORING
# =============================================================================

@cli.command()
@click.argument('lead_id')
@click.option('--save', is_flag=True, help='Persist the new score')
@click.option('--json', 'as_json', is_flag=True, help='Print raw JSON')
@pass_app
def score(app, lead_id, save, as_json):
    """Show the scoring breakdown for a lead."""
    lead = _require_lead(app, lead_id)
    engine = app.engine()
    # One instant for both the shown breakdown and the saved score
    now = engine.clock()

    try:
        data = engine.scoring_report(lead, scoring_metadata=lead.get('scoring_metadata'), now=now)
    except LeadScoringError as e:
        console.print(f"[red]Cannot score lead: {e}[/red]")
        raise click.Abort()

    if save:
        scored = engine.score_lead(lead, now=now)
        app.db.save_score(scored)
        data['current_score'] = scored.lead_score
        data['scoring_metadata'] = scored.scoring_metadata

    if as_json:
        click.echo(report.to_json(data))
    else:
        report.display_breakdown(data, out=console)
        if save:
            console.print("[green]Score saved[/green]")


@cli.command()
@click.argument('lead_id')
@click.option('--json', 'as_json', is_flag=True, help='Print raw JSON')
@pass_app
def recommend(app, lead_id, as_json):
    """Suggest actions that would raise a lead's score."""
    lead = _require_lead(app, lead_id)
    try:
        data = app.engine().recommendation_report(lead)
    except LeadScoringError as e:
        console.print(f"[red]Invalid lead record: {e}[/red]")
        raise click.Abort()

    if as_json:
        click.echo(report.to_json(data))
    else:
        report.display_recommendations(data, out=console)


@cli.command('batch-score')
@click.argument('lead_ids', nargs=-1)
@click.option('--all', '-a', 'all_leads', is_flag=True, help='Score every lead')
@click.option('--workers', '-w', default=1, help='Parallel workers')
@click.option('--no-save', is_flag=True, help='Do not persist scores')
@click.option('--limit', '-l', default=50, help='Max rows to display')
@click.option('--output', '-o', type=click.Path(path_type=Path), help='Export results to CSV')
@pass_app
def batch_score(app, lead_ids, all_leads, workers, no_save, limit, output):
    """Score many leads; incomplete records are reported, not fatal."""
    if all_leads:
        lead_ids = app.db.all_lead_ids()
    elif not lead_ids:
        console.print("[red]Please provide lead IDs or --all[/red]")
        raise click.Abort()

    leads = []
    for lead_id, lead in zip(lead_ids, app.db.get_leads_by_ids(lead_ids)):
        if lead is None:
            console.print(f"[yellow]Lead not found: {lead_id}[/yellow]")
        else:
            leads.append(lead)

    engine = app.engine(max_workers=workers)

    with Progress(console=console) as progress:
        task = progress.add_task("[cyan]Scoring leads...", total=len(leads))
        results = engine.batch_score(leads, on_progress=lambda _: progress.update(task, advance=1))

    if not no_save:
        saved = sum(1 for scored in results if app.db.save_score(scored))
        console.print(f"[green]Saved {saved} scores[/green]")

    report.display_scores(results, limit=limit, out=console)

    ok = [s for s in results if s.ok]
    console.print(f"\n[bold]Summary:[/bold] {len(ok)} scored, {len(results) - len(ok)} failed")
    for label in ('Hot', 'Warm', 'Cold', 'Disqualified'):
        console.print(f"  {label}: {len([s for s in ok if s.classification == label])}")

    if output:
        report.export_csv(results, output, out=console)


@cli.command()
@click.argument('lead_id')
@pass_app
def history(app, lead_id):
    """Show persisted score history for a lead."""
    _require_lead(app, lead_id)
    table = Table(title=f"Score History: {lead_id}")
    table.add_column("Scored At")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Class")

    for row in app.db.get_score_history(lead_id):
        table.add_row(str(row['scored_at']), str(row['total_score']), row['classification'])
    console.print(table)


@cli.command()
@pass_app
def stats(app):
    """Show database statistics."""
    stats = app.db.get_stats()
    by_status = stats.get('leads_by_status', {})
    by_class = stats.get('leads_by_classification', {})
    by_priority = stats.get('leads_by_priority', {})
    by_industry = stats.get('leads_by_industry', {})

    status_lines = "\n".join(f"  {s}: {by_status.get(s, 0)}" for s in VALID_STATUSES)
    class_lines = "\n".join(f"  {c}: {by_class.get(c, 0)}" for c in ('Hot', 'Warm', 'Cold', 'Disqualified'))
    priority_lines = "\n".join(f"  {p}: {n}" for p, n in by_priority.items()) or "  (none)"
    industry_lines = "\n".join(f"  {i}: {n}" for i, n in by_industry.items()) or "  (none)"

    console.print(Panel.fit(
        f"""[bold]Lead Statistics[/bold]

[cyan]Leads:[/cyan]
  Total: {stats.get('total_leads', 0)}
  Converted: {stats.get('converted_leads', 0)}

[cyan]By Status:[/cyan]
{status_lines}

[cyan]By Classification:[/cyan]
{class_lines}

[cyan]By Priority:[/cyan]
{priority_lines}

[cyan]Top Industries:[/cyan]
{industry_lines}
""",
        title="Lead Score Engine"
    ))


@cli.command()
def init():
    """Initialize project directories and copy example config."""
    import shutil

    for d in ('data', 'output/reports'):
        path = PROJECT_ROOT / d
        path.mkdir(parents=True, exist_ok=True)
        console.print(f"[green]✓[/green] Created {d}/")

    config_path = PROJECT_ROOT / 'config' / 'config.yaml'
    example_path = PROJECT_ROOT / 'config' / 'config.example.yaml'

    if not config_path.exists() and example_path.exists():
        shutil.copy(example_path, config_path)
        console.print("[green]✓[/green] Created config/config.yaml from example")

    console.print("\n[bold green]Project initialized![/bold green]")
    console.print("\nNext steps:")
    console.print("  1. Edit config/config.yaml to tune weights and target regions")
    console.print("  2. Run: python run.py import-csv leads.csv")
    console.print("  3. Run: python run.py batch-score --all")


if __name__ == '__main__':
    cli()
