"""CLI interface for DomainPulse."""

import asyncio
import json
import signal
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeRemainingColumn
from rich.table import Table

from . import __version__
from .checkers.batch_runner import BatchRunner, RunContext
from .checkers.factory import create_checker
from .config import BACKENDS, RUN_MODES, Settings, load_config
from .errors import ConfigurationError, DomainPulseError, InputError
from .generators.categorizer import Categorizer
from .generators.llm_client import create_model
from .generators.name_generator import NameGenerator
from .pipeline import CheckRequest, Pipeline
from .utils.logs import setup_logging
from .utils.normalizer import read_domain_file, unique_domains

console = Console()


def _install_cancel_handler(context: RunContext):
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, context.cancel)
    except NotImplementedError:
        # Windows event loops: Ctrl-C raises KeyboardInterrupt instead
        return False
    return True


async def run_pipeline(settings: Settings, check_request: CheckRequest, categorize: bool = True) -> dict:
    """Run one request end to end, rendering progress; returns the summary dict."""
    checker = create_checker(settings.checker)
    model = None
    if check_request.is_generator:
        model = create_model(settings.ai)
    elif categorize:
        try:
            model = create_model(settings.ai)
        except ConfigurationError:
            console.print("[dim]No AI key configured; results will not be categorized.[/dim]")

    runner = BatchRunner(checker, batch_size=settings.runner.batch_size, mode=settings.runner.mode)
    pipeline = Pipeline(
        runner,
        generator=NameGenerator(model, count=settings.ai.count) if model else None,
        categorizer=Categorizer(model) if model and categorize else None,
    )
    pipeline.check_ready(check_request)

    context = RunContext()
    handler_installed = _install_cancel_handler(context)
    summary = {'status': None, 'results': [], 'categorized': [], 'available': [], 'error': None}

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("[cyan]Starting...", total=None)

            async for event in pipeline.stream(check_request, context):
                data = event.data
                if event.event == 'status':
                    progress.update(task, description=f"[cyan]{data}")
                elif event.event == 'generated_domains':
                    console.print(f"[green]Generated {len(data['domains'])} domain ideas[/green]")
                elif event.event == 'domain_list':
                    progress.update(task, total=len(data['domains']), completed=0)
                elif event.event == 'domain_result':
                    summary['results'].append(data)
                elif event.event == 'progress':
                    progress.update(task, completed=data['checked'], total=data['total'])
                elif event.event == 'results':
                    summary['categorized'] = data['categorized']
                    summary['available'] = data['allAvailable']
                elif event.event == 'finished':
                    summary['status'] = data['status']
                    summary['available'] = summary['available'] or data.get('available', [])
                elif event.event == 'error':
                    summary['status'] = 'failed'
                    summary['error'] = data['message']
    finally:
        if handler_installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
        await checker.aclose()
        if model is not None:
            await model.aclose()

    return summary


def render_summary(summary: dict, show_all: bool = False):
    """Print results with distinct messages for cancelled, empty and failed runs."""
    results = summary['results']
    if show_all and results:
        table = Table(title="Checked Domains")
        table.add_column("Domain", style="cyan")
        table.add_column("Availability")
        styles = {'Available': 'green', 'Unavailable': 'red', 'Timeout': 'yellow', 'Error': 'yellow'}
        for r in results:
            style = styles.get(r['availability'], 'white')
            table.add_row(r['domain'], f"[{style}]{r['availability']}[/{style}]")
        console.print(table)

    if summary['status'] == 'failed':
        console.print(f"[bold red]Run failed:[/bold red] {summary['error']}")
    elif summary['status'] == 'cancelled':
        console.print(f"[yellow]Process cancelled after {len(results)} domains.[/yellow]")
        if summary['available']:
            console.print("Available so far: " + ", ".join(summary['available']))
        return

    for group in summary['categorized']:
        table = Table(title=f"{group['category']} ({len(group['domains'])})", show_header=False)
        table.add_column("Domain", style="cyan bold")
        for domain in group['domains']:
            table.add_row(domain)
        console.print(table)

    unknown = sum(1 for r in results if r['availability'] in ('Timeout', 'Error'))
    if summary['status'] == 'completed':
        if summary['available']:
            console.print(f"\n[bold green]Found {len(summary['available'])} available domains![/bold green]")
        else:
            console.print("[yellow]No available domains found from the list.[/yellow]")
    if unknown:
        console.print(f"[dim]{unknown} domains could not be checked (timeout or error).[/dim]")


def save_summary(summary: dict, output: str):
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        json.dump({
            'status': summary['status'],
            'available': summary['available'],
            'categorized': summary['categorized'],
            'results': summary['results'],
        }, f, indent=2)
    console.print(f"[green]Saved to {output}[/green]")


def _settings(ctx, batch_size: Optional[int], mode: Optional[str], backend: Optional[str]) -> Settings:
    settings: Settings = ctx.obj['settings']
    if batch_size is not None:
        settings.runner.batch_size = batch_size
    if mode:
        settings.runner.mode = mode
    if backend:
        settings.checker.backend = backend
    settings.validate()
    return settings


def _execute(settings: Settings, check_request: CheckRequest, categorize: bool, show_all: bool,
             output: Optional[str]):
    try:
        summary = asyncio.run(run_pipeline(settings, check_request, categorize=categorize))
    except InputError as e:
        raise click.UsageError(str(e))
    except DomainPulseError as e:
        raise click.ClickException(str(e))

    render_summary(summary, show_all=show_all)
    if output:
        save_summary(summary, output)
    if summary['status'] == 'failed':
        raise SystemExit(1)


run_options = [
    click.option('--batch-size', '-b', type=int, default=None, help='Domains per concurrent chunk'),
    click.option('--mode', type=click.Choice(RUN_MODES), default=None, help='Chunked progress or one whole-list batch'),
    click.option('--backend', type=click.Choice(BACKENDS), default=None, help='Availability backend'),
    click.option('--output', '-o', default=None, help='Output file (JSON)'),
    click.option('--all', 'show_all', is_flag=True, help='Show every checked domain, not just available ones'),
]


def with_run_options(func):
    for option in reversed(run_options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c', 'config_path', default=None, help='Path to config YAML')
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """DomainPulse - find available domain names fast."""
    try:
        settings = load_config(config_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    setup_logging(settings.logging, verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj['settings'] = settings


@cli.command()
@click.argument('domains', nargs=-1)
@click.option('--file', '-f', 'files', multiple=True, type=click.Path(exists=True, dir_okay=False),
              help='Text or CSV file to pull domains from')
@click.option('--categorize/--no-categorize', default=True, help='Group available domains with AI')
@with_run_options
@click.pass_context
def check(ctx, domains, files, categorize, batch_size, mode, backend, output, show_all):
    """Check availability of DOMAINS and/or domains found in files."""
    try:
        settings = _settings(ctx, batch_size, mode, backend)
    except ConfigurationError as e:
        raise click.BadParameter(str(e))

    domain_list: List[str] = list(domains)
    for path in files:
        try:
            domain_list.extend(read_domain_file(path))
        except InputError as e:
            raise click.BadParameter(str(e), param_hint='--file')

    domain_list = unique_domains(domain_list)
    if not domain_list:
        console.print("[red]No domains provided. Use arguments or --file[/red]")
        raise SystemExit(2)

    console.print(f"[bold]Checking {len(domain_list)} domains...[/bold]")
    _execute(settings, CheckRequest(mode='checker', domains=domain_list), categorize, show_all, output)


@cli.command()
@click.argument('keywords')
@click.option('--tlds', '-t', default='com,io,ai', help='TLDs to use (comma-separated)')
@click.option('--count', '-n', type=int, default=None, help='Number of names to request')
@with_run_options
@click.pass_context
def generate(ctx, keywords, tlds, count, batch_size, mode, backend, output, show_all):
    """Generate names from KEYWORDS with AI, then check and categorize them."""
    try:
        settings = _settings(ctx, batch_size, mode, backend)
    except ConfigurationError as e:
        raise click.BadParameter(str(e))
    if count is not None:
        settings.ai.count = count

    _execute(settings, CheckRequest(mode='generator', keywords=keywords, tlds=tlds), True, show_all, output)


@cli.command()
@click.option('--host', default=None, help='Bind address')
@click.option('--port', '-p', type=int, default=None, help='Port')
@click.pass_context
def serve(ctx, host, port):
    """Run the HTTP backend."""
    from .web import create_app

    settings: Settings = ctx.obj['settings']
    app = create_app(settings)
    app.run(host=host or settings.server.host, port=port or settings.server.port, threaded=True, debug=False)


def main():
    cli()


if __name__ == '__main__':
    main()
