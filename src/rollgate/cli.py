#!/usr/bin/env python
"""
CLI commands for inspecting feature flags and configuration.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import click

from rollgate.appconfig.provider import SnapshotConfigProvider, create_provider
from rollgate.appconfig.sources import JsonFileConfigSource
from rollgate.exceptions import ConfigurationError, RollgateValidationError
from rollgate.feature_flags.service import FeatureFlagService
from rollgate.logging import setup_logging
from rollgate.settings import get_settings


@dataclass
class CLIDependencies:
    """Bundle of injectable dependencies used by CLI commands."""

    provider_factory: Callable[[], SnapshotConfigProvider]
    app_name: str


def _get_cli_dependencies(config_file: str | None, app_name: str | None) -> CLIDependencies:
    """Return the default dependency bundle for CLI commands."""
    settings = get_settings()

    def _factory() -> SnapshotConfigProvider:
        source = JsonFileConfigSource(config_file) if config_file else None
        return create_provider(settings, source=source)

    return CLIDependencies(provider_factory=_factory, app_name=app_name or settings.app_name)


def _service(ctx: click.Context) -> FeatureFlagService:
    deps: CLIDependencies = ctx.obj
    try:
        provider = deps.provider_factory()
    except ConfigurationError as e:
        raise click.ClickException(f"Cannot load configuration: {e}") from e
    return FeatureFlagService(provider, app_name=deps.app_name)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


@click.group()
@click.option(
    "--config-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Read configuration from this JSON file instead of the configured source.",
)
@click.option("--app-name", default=None, help="Application name in services.<app-name> keys.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for diagnostics written to stderr.",
)
@click.pass_context
def cli(
    ctx: click.Context, config_file: str | None, app_name: str | None, log_level: str
) -> None:
    """Rollgate feature flag CLI."""
    setup_logging(level=log_level)
    if ctx.obj is None:
        ctx.obj = _get_cli_dependencies(config_file, app_name)


@cli.command()
@click.argument("feature")
@click.option("--user", "user_id", default=None, help="Evaluate for this user id.")
@click.pass_context
def check(ctx: click.Context, feature: str, user_id: str | None) -> None:
    """Check whether FEATURE is enabled, globally or for one user."""
    service = _service(ctx)
    try:
        if user_id is None:
            enabled = service.is_feature_enabled(feature)
        else:
            enabled = service.is_feature_enabled_for_user(feature, user_id)
    except RollgateValidationError as e:
        raise click.ClickException(str(e)) from e

    result: dict[str, Any] = {"feature": feature, "enabled": enabled}
    if user_id is not None:
        result["userId"] = user_id
    _echo_json(result)


@cli.command()
@click.argument("features", nargs=-1)
@click.pass_context
def status(ctx: click.Context, features: tuple[str, ...]) -> None:
    """Show status of FEATURES (default: every configured feature)."""
    service = _service(ctx)
    try:
        statuses = service.list_feature_statuses(list(features) if features else None)
    except RollgateValidationError as e:
        raise click.ClickException(str(e)) from e
    _echo_json({name: s.to_dict() for name, s in statuses.items()})


@cli.command()
@click.pass_context
def limits(ctx: click.Context) -> None:
    """Show operational limits and cache settings."""
    service = _service(ctx)
    _echo_json(
        {
            "limits": service.get_limits().to_dict(),
            "cache": service.get_cache_settings().to_dict(),
        }
    )


@cli.command()
@click.pass_context
def keys(ctx: click.Context) -> None:
    """List all configuration keys."""
    service = _service(ctx)
    for key in sorted(service.provider.get_all_configuration_keys()):
        click.echo(key)


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show configuration provider statistics."""
    _echo_json(_service(ctx).provider.get_configuration_stats())


@cli.command("get")
@click.argument("key")
@click.pass_context
def get_value(ctx: click.Context, key: str) -> None:
    """Print the raw value stored under KEY."""
    provider = _service(ctx).provider
    if not provider.has_configuration(key):
        raise click.ClickException(f"Key not found: {key}")
    _echo_json({"key": key, "value": provider.get_configuration_value(key)})


if __name__ == "__main__":
    cli()
