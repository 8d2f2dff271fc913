#!/usr/bin/env python
"""
CLI commands for the ClinicFlow module catalog.
"""

import asyncio
import json
import subprocess
import sys
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

import click

from clinicflow.platform import get_version
from clinicflow.platform.db import create_all_tables_async, dispose_engine
from clinicflow.platform.modules.definitions import REFERENCE_MODULES
from clinicflow.platform.modules.exceptions import ModuleCatalogError
from clinicflow.platform.modules.models import BillingCycle, Module, ModuleFilters, ModuleType
from clinicflow.platform.modules.money import MoneyFormatter
from clinicflow.platform.modules.service import ModuleService
from clinicflow.platform.modules.store import InMemoryCatalogStore

T = TypeVar("T")


@dataclass
class CLIDependencies:
    """Bundle of injectable dependencies used by CLI commands."""

    service_factory: Callable[[bool], ModuleService]
    create_tables: Callable[[], Awaitable[None]]
    subprocess_run: Callable[..., Any]
    formatter_factory: Callable[[], MoneyFormatter]


def _build_service(use_database: bool) -> ModuleService:
    """Service over the configured database or the shipped reference catalog."""
    if use_database:
        from clinicflow.platform.modules.sql_store import SQLCatalogStore

        return ModuleService(SQLCatalogStore())
    return ModuleService(InMemoryCatalogStore(REFERENCE_MODULES))


async def _create_tables() -> None:
    # Registers platform_modules on the metadata
    from clinicflow.platform.modules import sql_store  # noqa: F401

    try:
        await create_all_tables_async()
    finally:
        await dispose_engine()


def _get_cli_dependencies() -> CLIDependencies:
    """Return the default dependency bundle for CLI commands."""
    return CLIDependencies(
        service_factory=_build_service,
        create_tables=_create_tables,
        subprocess_run=subprocess.run,
        formatter_factory=MoneyFormatter,
    )


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning catalog errors into CLI errors."""
    try:
        return asyncio.run(coro)
    except ModuleCatalogError as exc:
        raise click.ClickException(exc.message) from exc


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _module_line(module: Module, money: MoneyFormatter) -> str:
    price = "included" if module.is_core else f"{money.format(module.pricing.monthly_price)}/mo"
    status = "" if module.is_available else f" [{module.status.value}]"
    return f"{module.code:<20} {module.name:<40} {price}{status}"


database_option = click.option(
    "--database", is_flag=True, help="Read the catalog from the configured database"
)
json_option = click.option("--json", "as_json", is_flag=True, help="Emit JSON")
cycle_option = click.option(
    "--cycle",
    type=click.Choice([c.value for c in BillingCycle]),
    default=None,
    help="Billing cycle (defaults to settings)",
)


@click.group()
@click.version_option(version=get_version(), prog_name="clinicflow-modules")
def cli() -> None:
    """ClinicFlow module catalog CLI."""
    pass


@cli.command()
@click.option("--type", "module_type", type=click.Choice([t.value for t in ModuleType]))
@click.option("--category", default=None, help="Only modules in this category")
@click.option("--include-inactive", is_flag=True, help="Include inactive modules")
@database_option
@json_option
def list_modules(
    module_type: str | None,
    category: str | None,
    include_inactive: bool,
    database: bool,
    as_json: bool,
) -> None:
    """List catalog modules."""
    deps = _get_cli_dependencies()
    filters = ModuleFilters(
        module_type=ModuleType(module_type) if module_type else None,
        category=category,
        is_active=None if include_inactive else True,
    )
    modules = _run(deps.service_factory(database).list_modules(filters))

    if as_json:
        _echo_json([m.model_dump(mode="json") for m in modules])
        return
    money = deps.formatter_factory()
    for module in modules:
        click.echo(_module_line(module, money))


@cli.command()
@click.argument("query")
@database_option
@json_option
def search(query: str, database: bool, as_json: bool) -> None:
    """Search modules by name, description or feature."""
    deps = _get_cli_dependencies()
    modules = _run(deps.service_factory(database).search_modules(query))

    if as_json:
        _echo_json([m.model_dump(mode="json") for m in modules])
        return
    if not modules:
        click.echo(f"No modules match '{query}'")
        return
    money = deps.formatter_factory()
    for module in modules:
        click.echo(_module_line(module, money))


@cli.command()
@click.argument("codes", nargs=-1, required=True)
@cycle_option
@database_option
@json_option
def resolve(codes: tuple[str, ...], cycle: str | None, database: bool, as_json: bool) -> None:
    """Resolve a requested module set into an entitlement."""
    deps = _get_cli_dependencies()
    preview = _run(deps.service_factory(database).preview_entitlement(codes, cycle))
    validation = preview.validation

    if as_json:
        data = preview.model_dump(mode="json")
        data["permissions"] = sorted(preview.permissions)
        _echo_json(data)
    else:
        money = deps.formatter_factory()
        click.echo(f"Activation order: {', '.join(validation.ordered_modules) or '-'}")
        click.echo(
            f"Amount due ({preview.pricing.billing_cycle.value}): "
            f"{money.format(preview.pricing.amount_due)}"
        )
        click.echo(f"Permissions granted: {len(preview.permissions)}")
        for error in validation.errors:
            click.echo(f"Error: {error}", err=True)

    if not validation.valid:
        sys.exit(1)


@cli.command()
@click.argument("codes", nargs=-1, required=True)
@cycle_option
@database_option
@json_option
def price(codes: tuple[str, ...], cycle: str | None, database: bool, as_json: bool) -> None:
    """Price a module set."""
    deps = _get_cli_dependencies()
    result = _run(deps.service_factory(database).calculate_pricing(codes, cycle))

    if as_json:
        _echo_json(result.model_dump(mode="json"))
        return
    money = deps.formatter_factory()
    for item in result.breakdown:
        click.echo(
            f"{item.code:<20} {money.format(item.monthly_price):>12}/mo "
            f"{money.format(item.yearly_price):>12}/yr"
        )
    click.echo(f"Monthly total: {money.format(result.monthly_total)}")
    click.echo(f"Yearly total: {money.format(result.yearly_total)}")
    click.echo(
        f"Yearly savings: {money.format(result.yearly_savings)} "
        f"({result.yearly_savings_percent}%)"
    )


@cli.command()
@click.argument("codes", nargs=-1, required=True)
@database_option
@json_option
def permissions(codes: tuple[str, ...], database: bool, as_json: bool) -> None:
    """Show the permissions granted by a module set."""
    deps = _get_cli_dependencies()
    granted = sorted(_run(deps.service_factory(database).get_permissions(codes)))

    if as_json:
        _echo_json(granted)
        return
    for permission in granted:
        click.echo(permission)


@cli.command()
@click.argument("codes", nargs=-1)
@database_option
@json_option
def recommend(codes: tuple[str, ...], database: bool, as_json: bool) -> None:
    """Suggest complementary modules for an enabled set."""
    deps = _get_cli_dependencies()
    modules = _run(deps.service_factory(database).recommend(codes))

    if as_json:
        _echo_json([m.model_dump(mode="json") for m in modules])
        return
    if not modules:
        click.echo("No recommendations")
        return
    money = deps.formatter_factory()
    for module in modules:
        click.echo(_module_line(module, money))


@cli.command()
@click.argument("code_a")
@click.argument("code_b")
@database_option
@json_option
def compare(code_a: str, code_b: str, database: bool, as_json: bool) -> None:
    """Compare module B against module A."""
    deps = _get_cli_dependencies()
    comparison = _run(deps.service_factory(database).compare(code_a, code_b))

    if as_json:
        _echo_json(comparison.model_dump(mode="json"))
        return
    money = deps.formatter_factory()
    delta = comparison.price_delta
    click.echo(f"Monthly difference: {money.format(delta.monthly)}")
    click.echo(f"Yearly difference: {money.format(delta.yearly)}")
    click.echo(
        f"Features: {len(comparison.feature_delta.only_a)} only in {code_a}, "
        f"{len(comparison.feature_delta.only_b)} only in {code_b}, "
        f"{len(comparison.feature_delta.common)} shared"
    )
    click.echo(
        f"Permissions: {len(comparison.permission_delta.only_a)} only in {code_a}, "
        f"{len(comparison.permission_delta.only_b)} only in {code_b}, "
        f"{len(comparison.permission_delta.common)} shared"
    )


@cli.command()
@click.argument("code")
@click.option("--enabled", "enabled", multiple=True, help="Currently enabled module (repeatable)")
@database_option
@json_option
def can_remove(code: str, enabled: tuple[str, ...], database: bool, as_json: bool) -> None:
    """Check whether a module can be removed from an enabled set."""
    deps = _get_cli_dependencies()
    check = _run(deps.service_factory(database).can_remove_module(code, enabled))

    if as_json:
        _echo_json(check.model_dump(mode="json"))
    elif check.can_remove:
        click.echo(f"{code} can be removed")
    else:
        click.echo(check.reason)

    if not check.can_remove:
        sys.exit(1)


@cli.command()
@click.option("--actor", default=None, help="Recorded in the audit log")
def seed_catalog(actor: str | None) -> None:
    """Seed the database with the reference module catalog."""
    deps = _get_cli_dependencies()
    click.echo("Seeding module catalog...")
    created = _run(deps.service_factory(True).seed_catalog(REFERENCE_MODULES, actor=actor))
    skipped = len(REFERENCE_MODULES) - len(created)
    click.echo(f"Created {len(created)} modules, skipped {skipped} existing")


@cli.command()
def init_database() -> None:
    """Create the catalog tables."""
    deps = _get_cli_dependencies()
    click.echo("Initializing database...")
    asyncio.run(deps.create_tables())
    click.echo("Database initialized successfully!")


@cli.command()
def run_migrations() -> None:
    """Run database migrations."""
    deps = _get_cli_dependencies()

    click.echo("Running database migrations...")
    result = deps.subprocess_run(["alembic", "upgrade", "head"], capture_output=True, text=True)

    if result.returncode == 0:
        click.echo("Migrations completed successfully!")
        click.echo(result.stdout)
    else:
        click.echo("Migration failed!")
        click.echo(result.stderr)
        sys.exit(1)


if __name__ == "__main__":
    cli()
