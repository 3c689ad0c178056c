"""CLI interface for printtracker."""

import click
import functools
import json
import logging
import sys
from datetime import datetime
from typing import Optional
from pydantic import ValidationError
from .errors import PrintTrackerError
from .models import (
    CustomerCreate,
    CustomerUpdate,
    JobCreate,
    JobItemCreate,
    JobItemUpdate,
    JobPriority,
    JobStatus,
    JobUpdate,
    NotificationType,
)
from .repository import Repository
from .settings import Settings, get_settings
from .storage import Storage

STATUS_CHOICES = [s.value for s in JobStatus]
PRIORITY_CHOICES = [p.value for p in JobPriority]
DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


def _settings() -> Settings:
    return click.get_current_context().find_root().obj


def open_repository() -> Repository:
    """Load the repository from the configured snapshot."""
    return Repository(Storage.load(_settings().snapshot_path))


def save_repository(repo: Repository) -> None:
    repo.storage.save(_settings().snapshot_path)


def handle_errors(func):
    """Report domain and validation errors on stderr and exit 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except json.JSONDecodeError as e:
            click.echo(f"✗ Invalid JSON: {e}", err=True)
        except ValidationError as e:
            click.echo(f"✗ Invalid data: {e}", err=True)
        except PrintTrackerError as e:
            click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    return wrapper


def _fmt_time(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _fmt_minutes(minutes: Optional[int]) -> str:
    if not minutes:
        return "0m"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if hours else f"{rest}m"


@click.group()
@click.option("--data-dir", type=click.Path(file_okay=False), default=None, help="Directory holding the state snapshot")
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[str]):
    """PrintTracker - 3D Print Job Tracking"""
    settings = Settings(data_dir=data_dir) if data_dir else get_settings()
    ctx.obj = settings
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# Customers

@cli.group()
def customer():
    """Manage customers"""
    pass


@customer.command("add")
@click.argument("name")
@click.argument("email")
@click.option("--phone", default=None)
@click.option("--company", default=None)
@handle_errors
def add_customer(name: str, email: str, phone: Optional[str], company: Optional[str]):
    """Add a customer.

    Example:
        printtracker customer add "Tech Solutions Inc." contact@techsolutions.com
    """
    repo = open_repository()
    created = repo.create_customer(CustomerCreate(name=name, email=email, phone=phone, company=company))
    save_repository(repo)
    click.echo(f"✓ Customer {created.id} created")


@customer.command("list")
def list_customers():
    """List customers."""
    customers = open_repository().list_customers()
    if not customers:
        click.echo("No customers found")
        return

    click.echo(f"\n{'ID':<6} {'Name':<28} {'Email':<32} {'Company':<20}")
    click.echo("-" * 88)
    for c in customers:
        click.echo(f"{c.id:<6} {c.name[:28]:<28} {c.email[:32]:<32} {(c.company or '')[:20]:<20}")
    click.echo()


@customer.command("show")
@click.argument("customer_id", type=int)
def show_customer(customer_id: int):
    """Show a customer as JSON."""
    c = open_repository().get_customer(customer_id)
    if c is None:
        click.echo(f"✗ Customer {customer_id} not found", err=True)
        sys.exit(1)
    click.echo(c.model_dump_json(indent=2))


@customer.command("update")
@click.argument("customer_id", type=int)
@click.option("--name", default=None)
@click.option("--email", default=None)
@click.option("--phone", default=None)
@click.option("--company", default=None)
@handle_errors
def update_customer(customer_id: int, **fields):
    """Update customer contact fields."""
    repo = open_repository()
    repo.update_customer(customer_id, CustomerUpdate(**{k: v for k, v in fields.items() if v is not None}))
    save_repository(repo)
    click.echo(f"✓ Customer {customer_id} updated")


@customer.command("delete")
@click.argument("customer_id", type=int)
@handle_errors
def delete_customer(customer_id: int):
    """Delete a customer. Their jobs are kept."""
    repo = open_repository()
    repo.delete_customer(customer_id)
    save_repository(repo)
    click.echo(f"✓ Customer {customer_id} deleted")


# Jobs

@cli.group()
def job():
    """Manage print jobs"""
    pass


@job.command("create")
@click.argument("customer_id", type=int)
@click.option("--priority", type=click.Choice(PRIORITY_CHOICES), default="normal")
@click.option("--due-date", type=click.DateTime(DATE_FORMATS), default=None)
@click.option("--notes", default=None)
@click.option("--items", "items_json", default=None, help="JSON list of items")
@handle_errors
def create_job(customer_id: int, priority: str, due_date: Optional[datetime], notes: Optional[str], items_json: Optional[str]):
    """Create a job, optionally with items.

    Example:
        printtracker job create 1 --items '[{"name":"Bracket","quantity":4,"estimated_time_per_item":10}]'
    """
    items = json.loads(items_json) if items_json else []
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        click.echo("✗ --items must be a JSON list of objects", err=True)
        sys.exit(1)
    repo = open_repository()
    created = repo.create_job(
        JobCreate(customer_id=customer_id, priority=priority, due_date=due_date, notes=notes),
        items=items,
    )
    save_repository(repo)
    click.echo(f"✓ Job {created.job_number} created (id {created.id})")


@job.command("list")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Filter by status")
@click.option("--limit", default=10, help="Maximum jobs to display")
def list_jobs(status: Optional[str], limit: int):
    """List jobs, newest first.

    Example:
        printtracker job list --status printing
    """
    jobs = open_repository().list_jobs(JobStatus(status) if status else None)[:limit]
    if not jobs:
        click.echo("No jobs found")
        return

    click.echo(f"\n{'ID':<6} {'Number':<12} {'Customer':<24} {'Status':<12} {'Progress':<9} {'Estimate':<10}")
    click.echo("-" * 76)
    for j in jobs:
        click.echo(
            f"{j.id:<6} {j.job_number:<12} {j.customer.name[:24]:<24} {j.status.value:<12} "
            f"{str(j.progress) + '%':<9} {_fmt_minutes(j.total_estimated_time):<10}"
        )
    click.echo()


@job.command("show")
@click.argument("job_id", type=int)
def show_job(job_id: int):
    """Show a job with its customer and items."""
    details = open_repository().get_job_with_details(job_id)
    if details is None:
        click.echo(f"✗ Job {job_id} not found", err=True)
        sys.exit(1)

    click.echo(f"\nJob {details.job_number} for {details.customer.name} <{details.customer.email}>")
    click.echo(f"  Status:    {details.status.value} ({details.progress}%)")
    click.echo(f"  Priority:  {details.priority.value}")
    click.echo(f"  Estimate:  {_fmt_minutes(details.total_estimated_time)}")
    click.echo(f"  Due:       {_fmt_time(details.due_date)}")
    click.echo(f"  Created:   {_fmt_time(details.created_at)}")
    click.echo(f"  Completed: {_fmt_time(details.completed_at)}")
    if details.items:
        click.echo(f"\n  {'ID':<6} {'Name':<24} {'Done':<10} {'Per item':<10} {'Material':<10}")
        for item in details.items:
            done = f"{item.completed_quantity}/{item.quantity}"
            click.echo(
                f"  {item.id:<6} {item.name[:24]:<24} {done:<10} "
                f"{_fmt_minutes(item.estimated_time_per_item):<10} {(item.material or '')[:10]:<10}"
            )
    click.echo()


@job.command("update")
@click.argument("job_id", type=int)
@click.option("--status", type=click.Choice(STATUS_CHOICES), default=None)
@click.option("--priority", type=click.Choice(PRIORITY_CHOICES), default=None)
@click.option("--due-date", type=click.DateTime(DATE_FORMATS), default=None)
@click.option("--notes", default=None)
@click.option("--actual-time", type=int, default=None, help="Actual print time in minutes")
@handle_errors
def update_job(job_id: int, **fields):
    """Update job fields.

    Example:
        printtracker job update 3 --status paused
    """
    repo = open_repository()
    updated = repo.update_job(job_id, JobUpdate(**{k: v for k, v in fields.items() if v is not None}))
    save_repository(repo)
    click.echo(f"✓ Job {updated.job_number} updated ({updated.status.value})")


@job.command("delete")
@click.argument("job_id", type=int)
@handle_errors
def delete_job(job_id: int):
    """Delete a job and its items."""
    repo = open_repository()
    repo.delete_job(job_id)
    save_repository(repo)
    click.echo(f"✓ Job {job_id} deleted")


# Items

@cli.group()
def item():
    """Manage job items"""
    pass


@item.command("add")
@click.argument("job_id", type=int)
@click.argument("name")
@click.argument("quantity", type=int)
@click.option("--time", "estimated_time_per_item", type=int, default=0, help="Minutes per unit")
@click.option("--completed", "completed_quantity", type=int, default=0)
@click.option("--material", default=None)
@click.option("--notes", default=None)
@handle_errors
def add_item(job_id: int, name: str, quantity: int, **fields):
    """Add an item to a job.

    Example:
        printtracker item add 1 "Phone stand" 4 --time 10 --material PLA
    """
    repo = open_repository()
    created = repo.create_item(JobItemCreate(job_id=job_id, name=name, quantity=quantity, **fields))
    save_repository(repo)
    job = repo.get_job(job_id)
    click.echo(f"✓ Item {created.id} added; job now {job.progress}% ({job.status.value})")


@item.command("update")
@click.argument("item_id", type=int)
@click.option("--name", default=None)
@click.option("--quantity", type=int, default=None)
@click.option("--time", "estimated_time_per_item", type=int, default=None, help="Minutes per unit")
@click.option("--completed", "completed_quantity", type=int, default=None)
@click.option("--material", default=None)
@click.option("--notes", default=None)
@click.option("--status", default=None)
@handle_errors
def update_item(item_id: int, **fields):
    """Update an item.

    Example:
        printtracker item update 2 --completed 4
    """
    repo = open_repository()
    updated = repo.update_item(item_id, JobItemUpdate(**{k: v for k, v in fields.items() if v is not None}))
    save_repository(repo)
    job = repo.get_job(updated.job_id)
    click.echo(f"✓ Item {item_id} updated; job now {job.progress}% ({job.status.value})")


@item.command("delete")
@click.argument("item_id", type=int)
@handle_errors
def delete_item(item_id: int):
    """Delete an item."""
    repo = open_repository()
    repo.delete_item(item_id)
    save_repository(repo)
    click.echo(f"✓ Item {item_id} deleted")


# Notifications

@cli.command()
@click.argument("job_id", type=int)
@click.option("--message", default=None)
@click.option("--type", "type_", type=click.Choice([t.value for t in NotificationType]), default="status_update")
@handle_errors
def notify(job_id: int, message: Optional[str], type_: str):
    """Record a notification to the job's customer.

    Example:
        printtracker notify 1 --message "Your parts are ready" --type completion
    """
    repo = open_repository()
    sent = repo.notify_customer(job_id, message=message, type=NotificationType(type_))
    save_repository(repo)
    click.echo(f"✓ Notification {sent.id} recorded for {sent.recipient_email}")


@cli.command()
@click.argument("job_id", type=int)
def notifications(job_id: int):
    """List notifications for a job, newest first."""
    sent = open_repository().list_notifications(job_id)
    if not sent:
        click.echo("No notifications found")
        return

    click.echo(f"\n{'Sent':<18} {'Type':<14} {'To':<30} {'Message':<30}")
    click.echo("-" * 94)
    for n in sent:
        click.echo(f"{_fmt_time(n.sent_at):<18} {n.type.value:<14} {n.recipient_email[:30]:<30} {n.message[:30]:<30}")
    click.echo()


@cli.command()
def stats():
    """Show dashboard statistics.

    Example:
        printtracker stats
    """
    s = open_repository().get_stats()

    click.echo("\n" + "=" * 50)
    click.echo("PrintTracker Status")
    click.echo("=" * 50)
    click.echo(f"Active Jobs:      {s.active_jobs}")
    click.echo(f"Completed Today:  {s.completed_today}")
    click.echo(f"Total Print Time: {s.total_print_time}h")
    click.echo(f"Queue Length:     {s.queue_length}")
    click.echo("=" * 50 + "\n")


@cli.group()
def config():
    """Show configuration"""
    pass


@config.command()
def show():
    """Show current configuration.

    Example:
        printtracker config show
    """
    settings = _settings()

    click.echo("\nCurrent Configuration:")
    click.echo(f"  data-dir:   {settings.data_dir}")
    click.echo(f"  snapshot:   {settings.snapshot_path}")
    click.echo(f"  log-level:  {settings.log_level}")
    click.echo()


if __name__ == "__main__":
    cli()
