"""
Postal Tracking Network CLI

Command-line client for the Postal Ledger Service. Identities are enrolled
into a local wallet; parcel commands act as the wallet identity selected
with --user (default: postalWorker).

Examples:
  postal-cli enroll-admin
  postal-cli create-user john employee
  postal-cli create-parcel PKG001 "123 Main St, Atlanta"
  postal-cli transport PKG001 "456 Oak Ave, Nairobi"
  postal-cli change-status PKG001 DAMAGED
  postal-cli query PKG001
  postal-cli wallet list
"""

import json
import time

import click

from postal_ledger.app.cli.client import LedgerClient, LedgerClientError
from postal_ledger.app.cli.wallet import Wallet

VALID_STATUSES = ["GOOD", "DAMAGED", "DESTROYED"]
VALID_ROLES = ["client", "employee"]


def _print_record(title: str, record: dict):
    click.echo(title)
    click.echo(json.dumps(record, indent=2))


def _client(ctx: click.Context, token: str = None) -> LedgerClient:
    return LedgerClient(ctx.obj["api_url"], token=token, transport=ctx.obj.get("transport"))


def _connect(ctx: click.Context) -> LedgerClient:
    """Client acting as the selected wallet identity."""
    user = ctx.obj["user"]
    identity = ctx.obj["wallet"].get(user)
    if not identity:
        raise click.ClickException(
            f'User "{user}" not found. Run "postal-cli create-user {user} employee" first.'
        )
    return _client(ctx, identity["access_token"])


def _wallet_entry(enrollment: dict) -> dict:
    return {
        "type": "jwt",
        "username": enrollment["username"],
        "identity": enrollment["identity"],
        "role": enrollment["role"],
        "mspId": enrollment["msp_id"],
        "access_token": enrollment["access_token"],
    }


@click.group()
@click.option("--api-url", envvar="POSTAL_API_URL", default="http://127.0.0.1:8000", show_default=True,
              help="Ledger service URL")
@click.option("--wallet", "wallet_path", envvar="POSTAL_WALLET_PATH", default="wallet", show_default=True,
              type=click.Path(file_okay=False), help="Wallet directory")
@click.option("--user", envvar="POSTAL_USER", default="postalWorker", show_default=True,
              help="Wallet identity to act as")
@click.pass_context
def cli(ctx, api_url, wallet_path, user):
    """Postal Tracking Network CLI"""
    ctx.ensure_object(dict)
    ctx.obj["api_url"] = api_url
    ctx.obj["wallet"] = Wallet(wallet_path)
    ctx.obj["user"] = user


@cli.command("enroll-admin")
@click.option("--username", default="admin", show_default=True)
@click.option("--secret", envvar="POSTAL_ADMIN_SECRET", default="adminpw", show_default=True)
@click.pass_context
def enroll_admin(ctx, username, secret):
    """Enroll the admin identity into the wallet."""
    wallet = ctx.obj["wallet"]
    if wallet.get(username):
        click.echo(f'An identity for the admin user "{username}" already exists in the wallet')
        return

    try:
        with _client(ctx) as client:
            enrollment = client.enroll_admin(username, secret)
    except LedgerClientError as e:
        raise click.ClickException(f"Failed to enroll admin: {e.message}")

    wallet.put(username, _wallet_entry(enrollment))
    click.echo(f'Successfully enrolled admin user "{username}" and imported it into the wallet')


@cli.command("create-user")
@click.argument("username")
@click.argument("role", required=False, default="employee", type=click.Choice(VALID_ROLES))
@click.pass_context
def create_user(ctx, username, role):
    """Register and enroll a new postal employee or client."""
    wallet = ctx.obj["wallet"]

    if wallet.get(username):
        click.echo(f'User "{username}" already exists in the wallet')
        return

    admin = wallet.get("admin")
    if not admin:
        raise click.ClickException('Admin identity not found. Run "postal-cli enroll-admin" first.')

    try:
        with _client(ctx, admin["access_token"]) as client:
            registration = client.register(username, role)
            enrollment = client.enroll(username, registration["enrollment_secret"])
    except LedgerClientError as e:
        raise click.ClickException(f"Failed to create user: {e.message}")

    wallet.put(username, _wallet_entry(enrollment))
    click.echo(f'Successfully created user "{username}" with role "{role}"')


@cli.command("create-parcel")
@click.argument("parcel_id")
@click.argument("destination")
@click.pass_context
def create_parcel(ctx, parcel_id, destination):
    """Create a new parcel."""
    try:
        with _connect(ctx) as client:
            parcel = client.create_parcel(parcel_id, destination)
    except LedgerClientError as e:
        raise click.ClickException(f"Failed to create parcel: {e.message}")

    _print_record("Parcel created successfully:", parcel)


@cli.command("transport")
@click.argument("parcel_id")
@click.argument("new_address")
@click.pass_context
def transport(ctx, parcel_id, new_address):
    """Move parcel to a new address."""
    try:
        with _connect(ctx) as client:
            parcel = client.transport(parcel_id, new_address)
            tx_id = client.last_tx_id
            events = client.events(tx_id=tx_id)["events"] if tx_id else []
    except LedgerClientError as e:
        raise click.ClickException(f"Failed to transport parcel: {e.message}")

    for event in events:
        if event["event_name"] == "Distribution":
            click.echo("\n*** DISTRIBUTION EVENT ***")
            click.echo(f"Parcel {event['payload']['id']}: {event['payload']['msg']}")

    _print_record("Parcel transported successfully:", parcel)


@cli.command("change-status")
@click.argument("parcel_id")
@click.argument("status")
@click.pass_context
def change_status(ctx, parcel_id, status):
    """Change parcel status (GOOD|DAMAGED|DESTROYED)."""
    status = status.upper()
    if status not in VALID_STATUSES:
        raise click.ClickException(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")

    try:
        with _connect(ctx) as client:
            parcel = client.change_status(parcel_id, status)
    except LedgerClientError as e:
        raise click.ClickException(f"Failed to change status: {e.message}")

    _print_record("Status changed successfully:", parcel)


@cli.command("query")
@click.argument("parcel_id")
@click.pass_context
def query(ctx, parcel_id):
    """Query parcel information."""
    try:
        with _connect(ctx) as client:
            parcel = client.query_parcel(parcel_id)
    except LedgerClientError as e:
        raise click.ClickException(f"Failed to query parcel: {e.message}")

    _print_record("Parcel information:", parcel)


@cli.command("events")
@click.option("--parcel-id", default=None, help="Only events for this parcel")
@click.option("--name", "event_name", default=None, help="Only events with this name")
@click.option("--follow", is_flag=True, help="Keep polling for new events")
@click.option("--interval", default=2.0, show_default=True, help="Polling interval in seconds")
@click.pass_context
def events(ctx, parcel_id, event_name, follow, interval):
    """List (or follow) committed ledger events."""
    after_id = 0
    try:
        with _connect(ctx) as client:
            while True:
                page = client.events(parcel_id=parcel_id, event_name=event_name, after_id=after_id)
                for event in page["events"]:
                    click.echo(f"[{event['id']}] {event['event_name']} {json.dumps(event['payload'])}")
                after_id = page["last_id"]
                if not follow:
                    break
                time.sleep(interval)
    except LedgerClientError as e:
        raise click.ClickException(f"Failed to read events: {e.message}")


@cli.group("wallet")
def wallet_group():
    """Inspect or prune wallet identities."""


@wallet_group.command("list")
@click.pass_context
def wallet_list(ctx):
    """List identities in the wallet."""
    wallet = ctx.obj["wallet"]
    labels = wallet.list()
    if not labels:
        click.echo("Wallet is empty")
        return
    for label in labels:
        identity = wallet.get(label)
        click.echo(f"{label}\t{identity.get('role', '?')}\t{identity.get('identity', '')}")


@wallet_group.command("remove")
@click.argument("label")
@click.pass_context
def wallet_remove(ctx, label):
    """Remove an identity from the wallet."""
    if not ctx.obj["wallet"].remove(label):
        raise click.ClickException(f'Identity "{label}" not found in the wallet')
    click.echo(f'Removed identity "{label}" from the wallet')


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
