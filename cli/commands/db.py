import click

from flock.config import Settings
from flock.sa.database import Database


@click.command(name='init-db')
@click.option('--database-url', default=None, help='Override DATABASE_URL')
def init_db(database_url: str):
    """Create the Authors, Books and UserBooks tables"""
    settings = Settings.from_env()
    db = Database(database_url or settings.database_url)
    try:
        db.create_tables()
        click.echo(click.style("Created tables at ", fg='green') +
                   click.style(db.engine.url.render_as_string(hide_password=True), fg='cyan'))
    finally:
        db.dispose()
