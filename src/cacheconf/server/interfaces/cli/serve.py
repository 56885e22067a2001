import click

from cacheconf.server.admin.runner import AdminAPIRunner
from cacheconf.server.admin.service import AdminService
from cacheconf.server.interfaces.cli.utils import (
    get_env_flag,
    open_config_service,
    output_error,
    run_async_cli,
)


@click.command(name="serve")
@click.option("--socket", "socket_path", type=click.Path(), help="Unix socket path (default: from cacheconf.yml)")
@click.option("--config", type=click.Path(dir_okay=False), help="Path to cacheconf.yml")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def serve(socket_path: str | None, config: str | None, debug: bool) -> None:
    """Serve the admin API on a Unix domain socket.

    Resolves the options once at startup, then runs until interrupted.
    """
    debug = debug or get_env_flag("CACHECONF_DEBUG")
    try:
        with open_config_service(config, debug=debug) as service:
            runner = AdminAPIRunner(
                AdminService(service, debug=debug),
                socket_path=socket_path or service.settings.admin.socket,
            )
            click.echo(f"Admin API listening on {runner.socket_path}")
            run_async_cli(runner.serve_until_signalled())
    except click.ClickException:
        raise
    except Exception as e:
        output_error(e, False, debug)
