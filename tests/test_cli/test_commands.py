import pytest
from click.testing import CliRunner
from sqlalchemy import inspect

from cli.main import cli
from flock.sa.database import Database

@pytest.fixture
def runner():
    return CliRunner()

@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv('DATABASE_URL', url)
    monkeypatch.setenv('RATE_LIMIT', 'false')
    return url

def test_init_db_creates_tables(runner, database_url):
    result = runner.invoke(cli, ['init-db'])

    assert result.exit_code == 0
    assert 'Created tables' in result.output
    db = Database(database_url)
    assert {'Authors', 'Books', 'UserBooks'} <= set(inspect(db.engine).get_table_names())
    db.dispose()

def test_populate_unknown_book(runner, database_url):
    runner.invoke(cli, ['init-db'])

    result = runner.invoke(cli, ['populate', 'missing-id', '--no-covers', '--verbose'])

    assert result.exit_code == 0
    assert 'REJECTED: 1' in result.output
    assert 'missing-id: book not found' in result.output

def test_populate_requires_ids(runner, database_url):
    result = runner.invoke(cli, ['populate'])
    assert result.exit_code != 0
