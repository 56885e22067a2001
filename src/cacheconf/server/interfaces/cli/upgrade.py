import click

from cacheconf.server.interfaces.cli.utils import (
    get_env_flag,
    open_config_service,
    output_error,
    output_result,
)


@click.command(name="upgrade")
@click.option("--config", type=click.Path(dir_okay=False), help="Path to cacheconf.yml")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def upgrade(config: str | None, json_output: bool, debug: bool) -> None:
    """Upgrade stored options to the running schema version.

    Converts legacy stored options, seeds missing defaults and reconciles
    the network options of a multi-tenant deployment. Safe to run again.
    """
    debug = debug or get_env_flag("CACHECONF_DEBUG")
    try:
        with open_config_service(config, debug=debug, resolve=False) as service:
            applied = service.upgrade()
            version = service.schema_version

        if json_output:
            output_result({"version": version, "applied": applied}, json_output, debug)
        elif applied:
            click.echo(click.style(f"Upgraded options to {version}", fg="green", bold=True))
            for step in applied:
                click.echo(f"  • {step}")
        else:
            click.echo(f"Options already at version {version}")

    except click.ClickException:
        raise
    except Exception as e:
        output_error(e, json_output, debug)
