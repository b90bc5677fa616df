import click
from datetime import datetime
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import config
from .down_marker import DownMarkerFile
from .exceptions import IPCError
from .keys import MIN_DATA_ID
from .provider import RedisIPCProvider, create_guard
from .store import StoreClient

console = Console()


def _provider(ctx, resource_type: str) -> RedisIPCProvider:
    store = StoreClient(
        host=ctx.obj['host'],
        port=ctx.obj['port'],
        db=ctx.obj['db'],
        prefix=ctx.obj['prefix']
    )
    guard = create_guard(store, DownMarkerFile(ctx.obj['down_lock_file']))
    return RedisIPCProvider(resource_type, guard)


@click.group()
@click.option('--host', default=config.REDIS_HOST, show_default=True, help='Redis host')
@click.option('--port', default=config.REDIS_PORT, show_default=True, type=int, help='Redis port')
@click.option('--db', default=config.REDIS_DB, show_default=True, type=int, help='Redis db')
@click.option('--prefix', default=config.REDIS_PREFIX, show_default=True, help='Key prefix')
@click.option('--down-lock-file', default=config.DOWN_LOCK_FILE, show_default=True,
              help='Path of the down marker file')
@click.pass_context
def cli(ctx, host: str, port: int, db: int, prefix: str, down_lock_file: str):
    """ipcredis - Redis backed IPC for worker processes"""
    ctx.ensure_object(dict)
    ctx.obj.update(host=host, port=port, db=db, prefix=prefix, down_lock_file=down_lock_file)


@cli.command()
@click.pass_context
def status(ctx):
    """Show store availability and down marker state"""
    marker = DownMarkerFile(ctx.obj['down_lock_file'])
    down_until = marker.load_down_until()

    table = Table(title="IPC Store Status", box=box.ROUNDED)
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_row("Redis", f"{ctx.obj['host']}:{ctx.obj['port']} db {ctx.obj['db']}")
    table.add_row("Prefix", ctx.obj['prefix'])
    table.add_row("Down marker", str(marker.path))

    if down_until > datetime.now().timestamp():
        table.add_row("Marked down until",
                      f"[red]{datetime.fromtimestamp(down_until):%Y-%m-%d %H:%M:%S}[/red]")
    else:
        table.add_row("Marked down until", "[green]not down[/green]")

    store = StoreClient(host=ctx.obj['host'], port=ctx.obj['port'],
                        db=ctx.obj['db'], prefix=ctx.obj['prefix'])
    try:
        store.connect()
        keys = store.scan_keys()
        table.add_row("Reachable", "[green]yes[/green]")
        table.add_row("Keys under prefix", str(len(keys)))
    except IPCError as e:
        table.add_row("Reachable", f"[red]no[/red] ({e})")
    finally:
        store.close()

    console.print(table)


@cli.command()
@click.argument('resource_type')
@click.option('--id', 'slot_id', default=MIN_DATA_ID, show_default=True, type=int, help='Slot id')
@click.pass_context
def get(ctx, resource_type: str, slot_id: int):
    """Print the value stored in a data slot"""
    try:
        provider = _provider(ctx, resource_type)
        if not provider.is_active():
            console.print("[yellow]Store is marked down, not querying[/yellow]")
            ctx.exit(1)
        if not provider.has_data(slot_id):
            console.print(f"[yellow]No data in {resource_type}:{slot_id}[/yellow]")
            return
        console.print(Panel(repr(provider.get_data(slot_id)),
                            title=f"{resource_type}:{slot_id}", box=box.ROUNDED))
    except IPCError as e:
        console.print(f"[red]Error reading slot: {str(e)}[/red]")
        ctx.exit(1)


@cli.command(name='set')
@click.argument('resource_type')
@click.argument('value')
@click.option('--id', 'slot_id', default=MIN_DATA_ID, show_default=True, type=int, help='Slot id')
@click.pass_context
def set_(ctx, resource_type: str, value: str, slot_id: int):
    """Store a string value in a data slot (guarded by the type's mutex)"""
    try:
        provider = _provider(ctx, resource_type)
        with provider.mutex():
            ok = provider.set_data(value, slot_id)
    except IPCError as e:
        console.print(f"[red]Error writing slot: {str(e)}[/red]")
        ctx.exit(1)
    if not ok:
        console.print(f"[red]Could not write {resource_type}:{slot_id}[/red]")
        ctx.exit(1)
    console.print(f"[green]Stored {resource_type}:{slot_id}[/green]")


@cli.command()
@click.option('--type', 'resource_type', default=None, help='Resource type requesting the cleanup')
@click.option('--narrow', is_flag=True, help="Only delete the type's own slots and mutex")
@click.pass_context
def clean(ctx, resource_type: str, narrow: bool):
    """Delete IPC keys under the configured prefix"""
    if narrow and not resource_type:
        raise click.UsageError("--narrow requires --type")
    try:
        provider = _provider(ctx, resource_type or "cli")
        ok = provider.clean(whole_prefix=not narrow)
    except IPCError as e:
        console.print(f"[red]Error cleaning: {str(e)}[/red]")
        ctx.exit(1)
    if not ok:
        console.print("[red]Cleanup failed, see log[/red]")
        ctx.exit(1)
    scope = f"keys of {resource_type}" if narrow else f"all keys under '{ctx.obj['prefix']}'"
    console.print(f"[green]Deleted {scope}[/green]")


@cli.command()
@click.option('--yes', is_flag=True, help='Confirm flushing the whole Redis db')
@click.pass_context
def reinit(ctx, yes: bool):
    """Flush the entire Redis db (all prefixes!)"""
    if not yes:
        click.confirm(f"Flush Redis db {ctx.obj['db']} completely?", abort=True)
    try:
        ok = _provider(ctx, "cli").reinit_ipc()
    except IPCError as e:
        console.print(f"[red]Error flushing: {str(e)}[/red]")
        ctx.exit(1)
    if not ok:
        console.print("[red]Flush failed, see log[/red]")
        ctx.exit(1)
    console.print("[green]Redis db flushed[/green]")


@cli.command(name='clear-down')
@click.pass_context
def clear_down(ctx):
    """Remove the down marker so processes retry Redis immediately"""
    marker = DownMarkerFile(ctx.obj['down_lock_file'])
    if marker.clear():
        console.print(f"[green]Removed {marker.path}[/green]")
    else:
        console.print(f"[yellow]No down marker at {marker.path}[/yellow]")


if __name__ == '__main__':
    cli()
