from __future__ import annotations

import json
import pathlib
from typing import Any
from typing import Generator
from unittest import mock

import pytest
from click.testing import CliRunner

import docrepo
from docrepo.cli import cli
from docrepo.client import Client
from docrepo.config import ClientConfig
from testing.client import mocked_session
from testing.client import SERVER_URL
from testing.mocked.server import MockServer

AUTH = ['--url', SERVER_URL, '--username', 'u', '--password', 'p']


@pytest.fixture()
def mocked_client(server: MockServer) -> Generator[None, None, None]:
    """Make clients created by the CLI talk to the mocked server."""
    from_config = Client.from_config

    def _from_config(config: ClientConfig, **kwargs: Any) -> Client:
        return from_config(config, session=mocked_session(server))

    with mock.patch.object(Client, 'from_config', side_effect=_from_config):
        yield


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ['version'])
    assert result.exit_code == 0
    assert docrepo.__version__ in result.output


def test_requires_url_or_config() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ['fetch', '/'])
    assert result.exit_code != 0
    assert '--config or --url' in result.output


def test_fetch(mocked_client: None) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [*AUTH, 'fetch', '/folder_1', '--enricher', 'acls'],
    )
    assert result.exit_code == 0
    document = json.loads(result.output)
    assert document['path'] == '/folder_1'
    assert 'acls' in document['context_parameters']


def test_fetch_from_config(
    mocked_client: None,
    tmp_path: pathlib.Path,
) -> None:
    filepath = tmp_path / 'docrepo.toml'
    ClientConfig(url=SERVER_URL, username='u', password='p').write_toml(
        filepath,
    )
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(filepath), 'fetch'])
    assert result.exit_code == 0
    assert json.loads(result.output)['path'] == '/'


def test_fetch_missing(mocked_client: None) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, [*AUTH, 'fetch', '/missing'])
    assert result.exit_code == 1


def test_query(mocked_client: None) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [*AUTH, 'query', 'SELECT * FROM Note', '--page-size', '2'],
    )
    assert result.exit_code == 0
    documents = json.loads(result.output)
    assert documents['total_size'] == 5
    assert len(documents['documents']) == 2


def test_run(mocked_client: None) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [*AUTH, 'run', 'Document.GetTitle', '--input', '/folder_2'],
    )
    assert result.exit_code == 0
    assert json.loads(result.output) == 'Folder 2'


def test_run_with_params(mocked_client: None) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [*AUTH, 'run', 'Repository.Query', '-p', 'query=SELECT * FROM Note'],
    )
    assert result.exit_code == 0
    assert json.loads(result.output)['total_size'] == 5


def test_run_with_file(
    mocked_client: None,
    tmp_path: pathlib.Path,
) -> None:
    filepath = tmp_path / 'notes.txt'
    filepath.write_bytes(b'some notes')
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            *AUTH,
            'run',
            'Blob.AttachOnDocument',
            '-p',
            'document=/folder_2/file',
            '--file',
            str(filepath),
        ],
    )
    assert result.exit_code == 0
    assert json.loads(result.output) == {
        'filename': 'notes.txt',
        'mimetype': 'text/plain',
        'length': 10,
    }


def test_run_bad_param() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, [*AUTH, 'run', 'Log', '-p', 'novalue'])
    assert result.exit_code != 0
    assert 'NAME=VALUE' in result.output


def test_run_input_and_file_exclusive(tmp_path: pathlib.Path) -> None:
    filepath = tmp_path / 'notes.txt'
    filepath.write_bytes(b'x')
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [*AUTH, 'run', 'Log', '--input', '/', '--file', str(filepath)],
    )
    assert result.exit_code != 0
    assert 'mutually exclusive' in result.output


def test_run_void_operation(mocked_client: None) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, [*AUTH, 'run', 'Log'])
    assert result.exit_code == 0
    assert json.loads(result.output) is None
