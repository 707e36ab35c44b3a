import click
from rich.console import Console
from rich.table import Table

from handlescope.config.logging_config import get_logger

console = Console()
log = get_logger(__name__)


def _get_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("handle-scope")
    except PackageNotFoundError:
        return "0.0.0+unknown"


@click.group()
@click.version_option(version=_get_version(), prog_name="handlescope")
def cli():
    """handlescope CLI - inspect dispose scope behaviour and configuration."""
    pass


def run_simulation(depth: int, resources: int, keep: int):
    """Run a synthetic nested workload through dispose scopes.

    Every level opens a scope, creates ``resources`` handles, recurses, then
    moves ``keep`` of its handles to the enclosing scope. Handles that leave
    the outermost scope end up detached and are released by hand at the end.

    Returns:
        Tuple of (statistics delta, number of handles released).
    """
    from handlescope.runtime.dispose_scope_manager import new_dispose_scope
    from handlescope.runtime.scoped_handle import ScopedHandle
    from handlescope.runtime.statistics import get_statistics

    released: list[str] = []
    before = get_statistics().snapshot()

    def run_level(level: int) -> list[ScopedHandle[str]]:
        with new_dispose_scope() as scope:
            handles = [ScopedHandle(f"h{level}.{i}", released.append) for i in range(resources)]
            if level < depth:
                run_level(level + 1)
            survivors = handles[:keep]
            scope.move_all_to_outer(survivors)
        return survivors

    for handle in run_level(1):
        handle.release()

    delta = get_statistics().snapshot().since(before)
    log.debug(f"Simulation finished: {delta}")
    return delta, len(released)


@cli.command("simulate")
@click.option("--depth", default=3, type=click.IntRange(min=1), help="Number of nested scopes.")
@click.option("--resources", default=4, type=click.IntRange(min=0), help="Handles created per scope.")
@click.option("--keep", default=1, type=click.IntRange(min=0), help="Handles per scope moved to the outer scope.")
@click.option("--prometheus", is_flag=True, help="Print all metrics in Prometheus text format instead.")
def simulate(depth: int, resources: int, keep: int, prometheus: bool):
    """Run nested dispose scopes over fake handles and report the statistics."""
    if keep > resources:
        raise click.BadParameter("--keep cannot exceed --resources", param_hint="--keep")

    delta, released = run_simulation(depth, resources, keep)

    if prometheus:
        from handlescope.observability.metrics import format_prometheus_metrics

        click.echo(format_prometheus_metrics(), nl=False)
        return

    table = Table(title="Dispose statistics")
    table.add_column("Counter", style="cyan")
    table.add_column("Delta", style="green", justify="right")

    for name, value in delta.model_dump().items():
        table.add_row(name, str(value))
    table.add_row("handles_released", str(released))

    console.print(table)


@cli.group()
def settings():
    """Commands for inspecting handlescope settings."""
    pass


@settings.command("show")
def show_settings():
    """Show registered settings and their current values."""
    from handlescope.config.configuration import get_settings_registry
    from handlescope.config.environment import Environment
    from handlescope.config.settings import SETTINGS_FILE, get_system_file_path

    settings_path = get_system_file_path(SETTINGS_FILE)
    state = "found" if Environment.has_settings() else "not found, using environment and defaults"
    console.print(f"Environment: {Environment.get_env()}")
    console.print(f"Settings file: {settings_path} ({state})")

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Allowed", style="magenta")
    table.add_column("Description", style="yellow")

    for setting in get_settings_registry():
        value = Environment.get(setting.env_var, "")
        allowed = ", ".join(setting.enum) if setting.enum else ""
        table.add_row(setting.env_var, str(value), allowed, setting.description)

    console.print(table)


if __name__ == "__main__":
    cli()
