import click

from cacheconf.server.core.config import BootstrapStatus
from cacheconf.server.interfaces.cli.utils import get_env_flag, open_config_service, output_error

_MESSAGES = {
    BootstrapStatus.NOT_WRITABLE: "Bootstrap file is not writable",
    BootstrapStatus.INSERTION_POINT_NOT_FOUND: "Bootstrap file has no place to insert the flag",
}


@click.command(name="bootstrap")
@click.argument("action", type=click.Choice(["enable", "disable"]))
@click.option("--path", type=click.Path(dir_okay=False), help="Bootstrap file (default: from cacheconf.yml)")
@click.option("--config", type=click.Path(dir_okay=False), help="Path to cacheconf.yml")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def bootstrap(action: str, path: str | None, config: str | None, debug: bool) -> None:
    """Set the cache flag in the host framework's bootstrap file.

    \b
    Examples:
        cacheconf bootstrap enable
        cacheconf bootstrap disable --path /var/www/wp-config.php
    """
    debug = debug or get_env_flag("CACHECONF_DEBUG")
    enable = action == "enable"
    try:
        with open_config_service(config, debug=debug, resolve=False) as service:
            status = service.set_bootstrap_flag(enable, path)
    except click.ClickException:
        raise
    except Exception as e:
        output_error(e, False, debug)
        return

    if status is not BootstrapStatus.OK:
        raise click.ClickException(_MESSAGES[status])
    click.echo(click.style(f"Bootstrap flag {action}d", fg="green"))
