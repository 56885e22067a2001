from typing import Any

import click

from cacheconf.server.interfaces.cli.utils import (
    get_env_flag,
    open_config_service,
    output_error,
    output_result,
)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return click.style("on", fg="green") if value else click.style("off", fg="red")
    if value in ("", [], {}):
        return click.style("-", dim=True)
    return str(value)


def _format_options(options: dict[str, Any], flags: dict[str, bool], tenant_id: int) -> str:
    output = [f"\n{click.style('Options', fg='cyan', bold=True)} for tenant {tenant_id}"]
    width = max(len(key) for key in options)
    for key, value in options.items():
        output.append(f"  {key.ljust(width)}  {_format_value(value)}")

    output.append(f"\n{click.style('Capability flags', fg='cyan', bold=True)}")
    for name, value in flags.items():
        output.append(f"  {name.ljust(width)}  {_format_value(value)}")
    return "\n".join(output)


@click.command(name="show")
@click.option("--key", help="Show a single option")
@click.option("--tenant", type=int, help="Resolve the options of another tenant")
@click.option("--config", type=click.Path(dir_okay=False), help="Path to cacheconf.yml")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def show(
    key: str | None, tenant: int | None, config: str | None, json_output: bool, debug: bool
) -> None:
    """Show the resolved options and capability flags.

    \b
    Examples:
        cacheconf show                     # All options of the configured tenant
        cacheconf show --key cache-ttl_pub # One option
        cacheconf show --tenant 3          # Options of tenant 3
    """
    debug = debug or get_env_flag("CACHECONF_DEBUG")
    try:
        with open_config_service(config, debug=debug, tenant_id=tenant) as service:
            if key:
                options = service.options()
                if key not in options:
                    raise click.ClickException(f"Unknown option: {key}")
                value = options[key]
                output_result({key: value} if json_output else value, json_output, debug)
                return

            flags = service.flags.model_dump()
            tenant_id = service.resolver.deployment.tenant_id
            if json_output:
                output_result(
                    {"tenant_id": tenant_id, "options": service.options(), "flags": flags},
                    json_output,
                    debug,
                )
            else:
                click.echo(_format_options(service.options(), flags, tenant_id))

    except click.ClickException:
        raise
    except Exception as e:
        output_error(e, json_output, debug)
