# cli/main.py
import click
from .commands.pipelines import populate, sync, refresh, recommend
from .commands.db import init_db

@click.group()
def cli():
    """Flock book metadata CLI"""
    pass

cli.add_command(populate)
cli.add_command(sync)
cli.add_command(refresh)
cli.add_command(recommend)
cli.add_command(init_db)

def main():
    """Entry point for the CLI"""
    cli()

if __name__ == '__main__':
    main()
