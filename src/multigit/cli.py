"""CLI entry point for multigit."""

from __future__ import annotations

import logging
import sys
from typing import NoReturn

import click
from pydantic import TypeAdapter

from multigit.errors import MultigitError, NoActiveAccountError
from multigit.lifecycle import IdentityLifecycle
from multigit.models import IdentityStatus, KeyAlgorithm
from multigit.ssh_config import DEFAULT_HOST

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_STATUS_ROWS = TypeAdapter(list[IdentityStatus])


def _fail(exc: Exception) -> NoReturn:
    click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


def _lifecycle(ctx: click.Context) -> IdentityLifecycle:
    return ctx.obj["lifecycle"]


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="multigit")
@click.option("--home", default=None, metavar="DIR", hidden=True, help="Override the home directory.")
@click.option("--host", default=DEFAULT_HOST, show_default=True, help="Git host to configure.")
@click.option("-v", "--verbose", is_flag=True, help="Log each step.")
@click.pass_context
def main(ctx: click.Context, home: str | None, host: str, verbose: bool) -> None:
    """multigit — manage several SSH identities for one git host."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["lifecycle"] = IdentityLifecycle.default(home=home, host=host)


@main.command("create")
@click.argument("name")
@click.argument("email")
@click.option("--passphrase", "-p", default="", help="Encrypt the private key.")
@click.option(
    "--algorithm",
    type=click.Choice([a.value for a in KeyAlgorithm], case_sensitive=False),
    default=KeyAlgorithm.ed25519.value,
    show_default=True,
    help="Key algorithm.",
)
@click.pass_context
def create_command(
    ctx: click.Context, name: str, email: str, passphrase: str, algorithm: str
) -> None:
    """Create a key pair, SSH config entry and account for NAME."""
    lifecycle = _lifecycle(ctx)
    try:
        key_pair = lifecycle.create_identity(
            name, email, passphrase=passphrase, algorithm=KeyAlgorithm(algorithm.lower())
        )
    except MultigitError as exc:
        _fail(exc)

    click.echo(f"Account '{name}' created ({key_pair.algorithm.value})")
    click.echo(f"  Host alias: {lifecycle.aliases.alias_for(name)}")
    click.echo(f"  Public key: {key_pair.public_key_line}")
    click.echo(f"\nTo use this account, run:\n  multigit use {name}")


@main.command("delete")
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def delete_command(ctx: click.Context, name: str, force: bool) -> None:
    """Delete the key pair, SSH config entry and account for NAME."""
    if not force and not click.confirm(f"Delete account '{name}'?"):
        return
    try:
        _lifecycle(ctx).delete_identity(name)
    except MultigitError as exc:
        _fail(exc)
    click.echo(f"Account '{name}' deleted")


@main.command("use")
@click.argument("name")
@click.option("--local", "-l", is_flag=True, help="Set git config for the current repository only.")
@click.pass_context
def use_command(ctx: click.Context, name: str, local: bool) -> None:
    """Switch to account NAME."""
    try:
        account = _lifecycle(ctx).switch_identity(name, local=local)
    except MultigitError as exc:
        _fail(exc)
    click.echo(f"Switched to account: {account.name} <{account.email}>")


@main.command("list")
@click.option("--json-output", is_flag=True, help="Emit raw JSON.")
@click.pass_context
def list_command(ctx: click.Context, json_output: bool) -> None:
    """List configured accounts."""
    rows = _lifecycle(ctx).list_identities()
    if json_output:
        click.echo(_STATUS_ROWS.dump_json(rows, indent=2).decode("utf-8"))
        return
    if not rows:
        click.echo("No accounts configured. Use 'multigit create' to add one.")
        return
    for row in rows:
        marker = "*" if row.active else " "
        click.echo(f"{marker} {row.account.name}")
        click.echo(f"  Email  : {row.account.email}")
        click.echo(f"  SSH Key: {row.key_path or '(not found)'}")


@main.command("status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """Show the active account."""
    try:
        row = _lifecycle(ctx).active_identity()
    except NoActiveAccountError:
        click.echo("No active account. Use 'multigit use <account>' to set one.")
        return
    except MultigitError as exc:
        _fail(exc)
    click.echo("Active account:")
    click.echo(f"  Name   : {row.account.name}")
    click.echo(f"  Email  : {row.account.email}")
    click.echo(f"  SSH Key: {row.key_path or '(not found)'}")


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@main.group("profile")
def profile_group() -> None:
    """Manage named groups of accounts."""


@profile_group.command("create")
@click.argument("name")
@click.pass_context
def profile_create_command(ctx: click.Context, name: str) -> None:
    try:
        _lifecycle(ctx).store.create_profile(name)
    except MultigitError as exc:
        _fail(exc)
    click.echo(f"Created profile: {name}")


@profile_group.command("list")
@click.pass_context
def profile_list_command(ctx: click.Context) -> None:
    store = _lifecycle(ctx).store
    document = store.load()
    if not document.profiles:
        click.echo("No profiles found. Create one with 'multigit profile create <name>'.")
        return
    for name in sorted(document.profiles):
        profile = document.profiles[name]
        marker = "*" if name == document.active_profile else " "
        members = ", ".join(
            member if enabled else f"{member} (disabled)"
            for member, enabled in sorted(profile.accounts.items())
        )
        click.echo(f"{marker} {name}: {members or '(no accounts)'}")


@profile_group.command("use")
@click.argument("name")
@click.pass_context
def profile_use_command(ctx: click.Context, name: str) -> None:
    try:
        _lifecycle(ctx).store.use_profile(name)
    except MultigitError as exc:
        _fail(exc)
    click.echo(f"Active profile set to: {name}")


@profile_group.command("delete")
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def profile_delete_command(ctx: click.Context, name: str, force: bool) -> None:
    if not force and not click.confirm(f"Delete profile '{name}'?"):
        return
    try:
        _lifecycle(ctx).store.delete_profile(name)
    except MultigitError as exc:
        _fail(exc)
    click.echo(f"Deleted profile: {name}")


@profile_group.command("add")
@click.argument("profile")
@click.argument("account")
@click.option("--disabled", is_flag=True, help="Add the account but leave it disabled.")
@click.pass_context
def profile_add_command(ctx: click.Context, profile: str, account: str, disabled: bool) -> None:
    """Add ACCOUNT to PROFILE."""
    try:
        _lifecycle(ctx).store.set_profile_member(profile, account, enabled=not disabled)
    except MultigitError as exc:
        _fail(exc)
    click.echo(f"Added {account} to profile {profile}")


@profile_group.command("remove")
@click.argument("profile")
@click.argument("account")
@click.pass_context
def profile_remove_command(ctx: click.Context, profile: str, account: str) -> None:
    """Remove ACCOUNT from PROFILE."""
    try:
        removed = _lifecycle(ctx).store.remove_profile_member(profile, account)
    except MultigitError as exc:
        _fail(exc)
    if removed:
        click.echo(f"Removed {account} from profile {profile}")
    else:
        click.echo(f"{account} is not in profile {profile}")


if __name__ == "__main__":
    main()
