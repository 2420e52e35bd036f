import click
from flask import Blueprint

from .services.payments import reconcile_paid_payments

bp = Blueprint("payments_cli", __name__, cli_group="payments")


@bp.cli.command("reconcile")
@click.option(
    "--older-than",
    default=10,
    show_default=True,
    type=int,
    help="Only touch payments paid at least this many minutes ago.",
)
def reconcile(older_than):
    """Apply membership effects to paid payments that are missing them."""
    applied = reconcile_paid_payments(older_than_minutes=older_than)
    click.echo(f"Reconciled {applied} payment(s).")
