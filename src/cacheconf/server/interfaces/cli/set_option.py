import click

from cacheconf.server.core.config import OptionValidationError
from cacheconf.server.interfaces.cli.utils import (
    get_env_flag,
    open_config_service,
    output_error,
    output_result,
    parse_assignment,
)


@click.command(name="set")
@click.argument("assignments", nargs=-1, required=True)
@click.option("--config", type=click.Path(dir_okay=False), help="Path to cacheconf.yml")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def set_option(assignments: tuple[str, ...], config: str | None, json_output: bool, debug: bool) -> None:
    """Change stored options.

    Values are parsed as YAML, so numbers, booleans and lists keep their type.
    Unknown keys are ignored. Changes take effect on the next resolution.

    \b
    Examples:
        cacheconf set cache-ttl_pub=3600
        cacheconf set cache-mobile=true cache-browser=1
        cacheconf set "cache-exc_roles=[editor, author]"
    """
    debug = debug or get_env_flag("CACHECONF_DEBUG")
    changes = dict(parse_assignment(assignment) for assignment in assignments)
    try:
        with open_config_service(config, debug=debug) as service:
            result = service.change("set", changes)

        if json_output:
            output_result(result.model_dump(exclude={"options"}), json_output, debug)
        elif result.status == "unchanged":
            click.echo(click.style("No option changed", fg="yellow"))
        else:
            click.echo(click.style(f"Saved {len(result.changed)} option(s)", fg="green", bold=True))
            for key, value in result.changed.items():
                click.echo(f"  {key} = {value!r}")

    except click.ClickException:
        raise
    except OptionValidationError as e:
        if not json_output:
            for message in e.errors:
                click.echo(f"  {click.style('✗', fg='red')} {message}", err=True)
        output_error(e, json_output, debug)
    except Exception as e:
        output_error(e, json_output, debug)
