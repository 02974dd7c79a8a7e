import asyncio
import functools
import json
import sys
from typing import Any, Awaitable, Callable, Optional

import click
import yaml

from attio._cogs.clients import transports
from attio._cogs.configs import configuration
from attio._cogs.helpers import versions
from attio._cogs.structs import exceptions
from attio._core.engines import loggers
from attio._core.resources import meta, objects, records
from attio._kits import webhooks


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: Optional[bool] = False,
                log_refkey: Optional[str] = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def client_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to build the client's settings in all commands the same way."""
    @click.option('--api-key', type=str, envvar='ATTIO_API_KEY')
    @click.option('-o', '--output', type=click.Choice(['yaml', 'json']), default='yaml')
    @functools.wraps(fn)
    def wrapper(api_key: Optional[str], output: str, *args: Any, **kwargs: Any) -> Any:
        try:
            settings = configuration.ClientSettings.from_env()
        except exceptions.ConfigurationError as e:
            raise click.UsageError(str(e)) from e
        if api_key:
            settings.auth.api_key = api_key
        if not settings.auth.api_key:
            raise click.UsageError("An API key is required: use --api-key or ATTIO_API_KEY.")
        result = asyncio.run(_with_client(settings, functools.partial(fn, *args, **kwargs)))
        _echo(result, output=output)

    return wrapper


async def _with_client(
        settings: configuration.ClientSettings,
        fn: Callable[[], Awaitable[Any]],
) -> Any:
    async with transports.Client(settings=settings):
        try:
            return await fn()
        except exceptions.AttioError as e:
            raise click.ClickException(str(e)) from e


def _echo(data: Any, *, output: str) -> None:
    if output == 'json':
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(yaml.safe_dump(json.loads(json.dumps(data, default=str)), sort_keys=False), nl=False)


@click.version_option(version=versions.version or 'unknown', prog_name='attio')
@click.group(name='attio', context_settings=dict(
    auto_envvar_prefix='ATTIO',
))
def main() -> None:
    pass


@main.command()
@logging_options
@client_options
async def identify() -> Any:
    """ Show the current token's workspace and scopes. """
    info = await meta.Meta.identify()
    return info.to_dict()


@main.command(name='objects')
@logging_options
@client_options
async def list_objects() -> Any:
    """ List the objects of the workspace. """
    return [obj.to_dict() async for obj in objects.Object.iterate()]


@main.command(name='records')
@logging_options
@click.option('-l', '--limit', type=int, default=None)
@click.option('--offset', type=int, default=None)
@click.argument('object')
@client_options
async def list_records(object: str, limit: Optional[int], offset: Optional[int]) -> Any:
    """ List one page of the records of an object. """
    page = await records.Record.list(object=object, limit=limit, offset=offset)
    return {
        'data': [record.to_dict() for record in page],
        'has_more': page.has_more,
        'next_cursor': page.next_cursor,
        'next_offset': page.next_offset,
    }


@main.command(name='verify-webhook')
@logging_options
@click.option('--secret', type=str, required=True, envvar='ATTIO_WEBHOOK_SECRET')
@click.option('--signature', type=str, required=True)
@click.option('--timestamp', type=str, required=True)
@click.option('--tolerance', type=float, default=webhooks.DEFAULT_TOLERANCE)
@click.option('--no-tolerance', is_flag=True)
@click.argument('payload', type=click.File('rb'), default='-')
def verify_webhook(
        secret: str,
        signature: str,
        timestamp: str,
        tolerance: float,
        no_tolerance: bool,
        payload: Any,
) -> None:
    """ Verify a webhook delivery's signature; the payload is read from a file or stdin. """
    body = payload.read()
    try:
        webhooks.verify_signature(body, signature, timestamp, secret,
                                  tolerance=None if no_tolerance else tolerance)
    except exceptions.SignatureVerificationError as e:
        click.echo(f"Invalid: {e}", err=True)
        sys.exit(1)
    else:
        click.echo("Valid.")
