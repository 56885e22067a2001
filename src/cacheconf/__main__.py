import click

from cacheconf.server.interfaces.cli.bootstrap import bootstrap
from cacheconf.server.interfaces.cli.serve import serve
from cacheconf.server.interfaces.cli.set_option import set_option
from cacheconf.server.interfaces.cli.show import show
from cacheconf.server.interfaces.cli.upgrade import upgrade


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """cacheconf CLI"""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(show)
cli.add_command(set_option)
cli.add_command(upgrade)
cli.add_command(bootstrap)
cli.add_command(serve)


if __name__ == "__main__":
    cli()
