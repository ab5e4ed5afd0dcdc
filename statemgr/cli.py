import asyncio
import dataclasses
import functools
import json
from typing import IO, Any, Awaitable, Callable, List, Optional, TypeVar

import click
import yaml

from statemgr._cogs.clients import errors
from statemgr._cogs.configs import configuration
from statemgr._cogs.helpers import versions
from statemgr._cogs.structs import bodies, references
from statemgr._core import providers
from statemgr._core.engines import loggers

_T = TypeVar('_T')


@dataclasses.dataclass()
class CLIControls:
    """ Provider controls, which are impossible to pass via CLI. """
    server: Optional[str] = None
    timeout: Optional[float] = None
    settings: Optional[configuration.ClientSettings] = None


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


output_option = click.option('-o', '--output', type=click.Choice(['yaml', 'json']), default='yaml')
pass_controls = click.make_pass_decorator(CLIControls, ensure=True)


@click.version_option(version=versions.version or 'unknown', prog_name='statemgr')
@click.group(name='statemgr', context_settings=dict(
    auto_envvar_prefix='STATEMGR',
))
@click.option('-s', '--server', type=str, help="The state manager's base URL.")
@click.option('-t', '--timeout', type=float, help="A timeout of every request, in seconds.")
@pass_controls
def main(__controls: CLIControls, server: Optional[str], timeout: Optional[float]) -> None:
    __controls.server = server if server is not None else __controls.server
    __controls.timeout = timeout if timeout is not None else __controls.timeout


@main.command()
@logging_options
@output_option
@click.option('-n', '--namespace', type=str, default='default')
@click.option('--shard', 'shard_id', type=str)
@click.argument('group')
@click.argument('kind')
@click.argument('name')
@pass_controls
def get(
        __controls: CLIControls,
        group: str,
        kind: str,
        name: str,
        namespace: str,
        shard_id: Optional[str],
        output: str,
) -> None:
    """ Fetch one resource and print it. """
    gk = references.GroupKind(group=group, kind=kind)
    key = references.ObjectKey(namespace=namespace, name=name)
    obj, found = _execute(__controls, lambda provider: provider.get(
        key, gk=gk, shard_id=shard_id, timeout=__controls.timeout))
    if not found or obj is None:
        raise click.ClickException(f"{gk!r} {key!r} is not found.")
    click.echo(_render(obj.to_dict(), output=output))


@main.command(name='list')
@logging_options
@output_option
@click.option('-g', '--group', type=str)
@click.option('-k', '--kind', type=str)
@click.option('-n', '--namespace', type=str)
@click.option('--name', type=str)
@click.option('--shard', 'shard_id', type=str)
@click.option('--pending', is_flag=True)
@pass_controls
def list_(
        __controls: CLIControls,
        group: Optional[str],
        kind: Optional[str],
        namespace: Optional[str],
        name: Optional[str],
        shard_id: Optional[str],
        pending: bool,
        output: str,
) -> None:
    """ List the resources matching the filter (all by default). """
    opts = references.ListOpts(group=group, kind=kind, namespace=namespace, name=name,
                               shard_id=shard_id, pending=pending)
    objs = _execute(__controls, lambda provider: provider.list(opts, timeout=__controls.timeout))
    click.echo(_render([obj.to_dict() for obj in objs], output=output))


@main.command()
@logging_options
@output_option
@click.option('--shard', 'shard_id', type=str, required=True)
@click.argument('group')
@click.argument('kind')
@pass_controls
def pending(
        __controls: CLIControls,
        group: str,
        kind: str,
        shard_id: str,
        output: str,
) -> None:
    """ List all the pending resources of a shard (through all the pages). """
    gk = references.GroupKind(group=group, kind=kind)
    objs = _execute(__controls, lambda provider: provider.list_pending(
        shard_id, gk=gk, timeout=__controls.timeout))
    click.echo(_render([obj.to_dict() for obj in objs], output=output))


@main.command()
@logging_options
@click.option('-f', '--filename', 'file', type=click.File('r'), required=True)
@click.option('--update', is_flag=True, help="Replace the existing resources instead of creating.")
@click.option('--status', is_flag=True, help="Store the statuses of the existing resources.")
@pass_controls
def apply(
        __controls: CLIControls,
        file: IO[str],
        update: bool,
        status: bool,
) -> None:
    """ Create (or update) the resources from a multi-document YAML file. """
    if update and status:
        raise click.UsageError("Either --update or --status can be used, not both.")
    try:
        docs = [doc for doc in yaml.safe_load_all(file) if doc is not None]
        objs = [bodies.Resource.from_dict(doc) for doc in docs]
    except (yaml.YAMLError, TypeError, ValueError) as e:
        raise click.ClickException(f"Cannot load the resources: {e}")

    async def store_all(
            provider: providers.StateManagerProvider[bodies.Resource],
    ) -> List[bodies.Resource]:
        results: List[bodies.Resource] = []
        for obj in objs:
            if status:
                results.append(await provider.update_status(obj, timeout=__controls.timeout))
            elif update:
                results.append(await provider.update(obj, timeout=__controls.timeout))
            else:
                results.append(await provider.create(obj, timeout=__controls.timeout))
        return results

    verb = 'status-updated' if status else 'updated' if update else 'created'
    for obj in _execute(__controls, store_all):
        click.echo(f"{obj.get_own_gk()!r} {obj.get_key()!r} {verb}")


@main.command()
@logging_options
@click.option('-n', '--namespace', type=str, default='default')
@click.option('--shard', 'shard_id', type=str)
@click.option('--ignore-missing', is_flag=True)
@click.argument('group')
@click.argument('kind')
@click.argument('name')
@pass_controls
def delete(
        __controls: CLIControls,
        group: str,
        kind: str,
        name: str,
        namespace: str,
        shard_id: Optional[str],
        ignore_missing: bool,
) -> None:
    """ Delete one resource. """
    gk = references.GroupKind(group=group, kind=kind)
    key = references.ObjectKey(namespace=namespace, name=name)
    try:
        _execute(__controls, lambda provider: provider.delete(
            key, gk=gk, shard_id=shard_id, timeout=__controls.timeout))
    except _MissingError:
        if not ignore_missing:
            raise
        click.echo(f"{gk!r} {key!r} is already absent")
    else:
        click.echo(f"{gk!r} {key!r} deleted")


def _execute(
        controls: CLIControls,
        fn: Callable[[providers.StateManagerProvider[bodies.Resource]], Awaitable[_T]],
) -> _T:
    if not controls.server:
        raise click.UsageError("The server is not specified: use --server or STATEMGR_SERVER.")

    async def _run() -> _T:
        async with providers.StateManagerProvider(
            bodies.Resource,
            controls.server or '',
            settings=controls.settings,
        ) as provider:
            return await fn(provider)

    try:
        return asyncio.run(_run())
    except errors.APINotFoundError as e:
        raise _MissingError(str(e)) from e
    except errors.StateManagerError as e:
        raise click.ClickException(str(e)) from e


class _MissingError(click.ClickException):
    """ A "not found" error, which some commands can tolerate. """


def _render(data: Any, *, output: str) -> str:
    if output == 'json':
        return json.dumps(data, indent=2)
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False).rstrip('\n')
