"""`docrepo` command-line interface."""
from __future__ import annotations

import dataclasses
import json
import logging
import sys
from typing import Any
from typing import ClassVar

import click

import docrepo
from docrepo.client import Client
from docrepo.config import ClientConfig
from docrepo.exceptions import ClientError
from docrepo.objects.blob import Blob

logger = logging.getLogger(__name__)


class _CLIFormatter(logging.Formatter):
    """Custom format for CLI printing."""

    red = '\x1b[0;31m'
    green = '\x1b[0;32m'
    yellow = '\x1b[0;33m'
    cyan = '\x1b[0;36m'
    bold_red = '\x1b[1;31m'
    reset = '\x1b[0m'

    FORMATS: ClassVar[dict[int, str]] = {
        logging.DEBUG: f'{cyan}DEBUG:{reset} %(message)s',
        logging.INFO: f'{green}INFO:{reset} %(message)s',
        logging.WARNING: f'{yellow}WARNING:{reset} %(message)s',
        logging.ERROR: f'{red}ERROR:{reset} %(message)s',
        logging.CRITICAL: f'{bold_red}CRITICAL:{reset} %(message)s',
    }

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover
        formatter = logging.Formatter(self.FORMATS[record.levelno])
        return formatter.format(record)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, Blob):
        return {
            'filename': value.filename,
            'mimetype': value.mimetype,
            'length': value.length,
        }
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if hasattr(value, 'model_dump'):
        return value.model_dump(mode='json')
    return value


def _echo_result(result: Any) -> None:
    click.echo(json.dumps(_to_jsonable(result), indent=2, default=str))


def _parse_param(value: str) -> tuple[str, Any]:
    name, sep, raw = value.partition('=')
    if not sep or not name:
        raise click.BadParameter(f'Expected NAME=VALUE. Got {value!r}.')
    try:
        return name, json.loads(raw)
    except ValueError:
        return name, raw


@click.group()
@click.option(
    '--config',
    'config_path',
    type=click.Path(exists=True, dir_okay=False),
    help='Client TOML configuration file.',
)
@click.option('--url', envvar='DOCREPO_URL', help='Server base URL.')
@click.option('--username', envvar='DOCREPO_USERNAME', help='Username.')
@click.option('--password', envvar='DOCREPO_PASSWORD', help='Password.')
@click.option(
    '--log-level',
    default='WARNING',
    type=click.Choice(
        ['ERROR', 'WARNING', 'INFO', 'DEBUG'],
        case_sensitive=False,
    ),
    help='Minimum logging level.',
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    url: str | None,
    username: str | None,
    password: str | None,
    log_level: str,
) -> None:
    """Query and operate on a document repository."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_CLIFormatter())
    logging.basicConfig(level=log_level, handlers=[handler])

    ctx.ensure_object(dict)
    ctx.obj['CONFIG_PATH'] = config_path
    ctx.obj['URL'] = url
    ctx.obj['USERNAME'] = username
    ctx.obj['PASSWORD'] = password


def _client(ctx: click.Context) -> Client:
    if ctx.obj['CONFIG_PATH'] is not None:
        config = ClientConfig.from_toml(ctx.obj['CONFIG_PATH'])
    elif ctx.obj['URL'] is not None:
        config = ClientConfig(
            url=ctx.obj['URL'],
            username=ctx.obj['USERNAME'],
            password=ctx.obj['PASSWORD'],
        )
    else:
        raise click.UsageError('One of --config or --url is required.')
    return Client.from_config(config)


def _run(ctx: click.Context, call: Any) -> None:
    with _client(ctx) as client:
        try:
            result = call(client)
        except ClientError as e:
            logger.error(
                f'{type(e).__name__}: {e.message}'
                + (f' (status={e.status})' if e.status is not None else ''),
            )
            ctx.exit(1)
        else:
            _echo_result(result)


@cli.command()
def version() -> None:
    """Show the DocRepo version."""
    click.echo(f'DocRepo v{docrepo.__version__}')


@cli.command()
@click.argument('path', metavar='PATH', default='/')
@click.option(
    '--enricher',
    'enrichers',
    multiple=True,
    help='Document enricher to request. May be repeated.',
)
@click.pass_context
def fetch(ctx: click.Context, path: str, enrichers: tuple[str, ...]) -> None:
    """Fetch the document at PATH."""
    _run(
        ctx,
        lambda c: c.enrichers(*enrichers)
        .repository()
        .fetch_document_by_path(path),
    )


@cli.command()
@click.argument('nxql', metavar='NXQL')
@click.option('--page-size', type=int, help='Number of results per page.')
@click.pass_context
def query(ctx: click.Context, nxql: str, page_size: int | None) -> None:
    """Run an NXQL query."""
    _run(ctx, lambda c: c.repository().query(nxql, page_size=page_size))


@cli.command()
@click.argument('operation_id', metavar='OPERATION')
@click.option(
    '--param',
    '-p',
    'params',
    multiple=True,
    metavar='NAME=VALUE',
    help='Operation parameter. VALUE is parsed as JSON if possible.',
)
@click.option('--input', 'input_', help='Input document path or uid.')
@click.option(
    '--file',
    'file_',
    type=click.Path(exists=True, dir_okay=False),
    help='Local file sent as a blob input.',
)
@click.pass_context
def run(
    ctx: click.Context,
    operation_id: str,
    params: tuple[str, ...],
    input_: str | None,
    file_: str | None,
) -> None:
    """Execute the Automation OPERATION."""
    if input_ is not None and file_ is not None:
        raise click.UsageError('--input and --file are mutually exclusive.')
    parsed = dict(_parse_param(p) for p in params)

    def _call(client: Client) -> Any:
        builder = client.automation(operation_id).params(parsed)
        if input_ is not None:
            builder.input(input_)
        elif file_ is not None:
            builder.input(Blob.from_path(file_))
        return builder.execute()

    _run(ctx, _call)
