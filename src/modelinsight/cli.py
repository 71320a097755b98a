"""Command-line interface for modelinsight."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="modelinsight",
    help="Introspection utilities for fitted regression models.",
    no_args_is_help=True,
)

if TYPE_CHECKING:
    import pandas as pd

console = Console()


def _use_config(config: Path | None) -> None:
    if config is None:
        return
    from modelinsight.config import load_config, set_config

    console.print(f"[blue]Loading configuration from {config}[/blue]")
    set_config(load_config(config))


def _read_table(path: Path) -> "pd.DataFrame":
    import pandas as pd

    from modelinsight.dependencies import check_if_installed

    suffix = path.suffix.lower()
    if suffix == ".parquet":
        check_if_installed("pyarrow", reason="to read Parquet files")
        return pd.read_parquet(path)
    if suffix in (".tsv", ".tab"):
        return pd.read_csv(path, sep="\t")
    return pd.read_csv(path)


@app.command()
def check(
    packages: Annotated[
        list[str],
        typer.Argument(help="Import names of the packages to check."),
    ],
    minimum_version: Annotated[
        str | None,
        typer.Option(
            "--minimum-version",
            "-v",
            help="Minimum required version of the packages.",
        ),
    ] = None,
    reason: Annotated[
        str | None,
        typer.Option("--reason", "-r", help="Why the packages are needed."),
    ] = None,
) -> None:
    """Check whether packages are installed."""
    import warnings

    from modelinsight.dependencies import check_if_installed, installed_version
    from modelinsight.exceptions import InsightWarning

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", InsightWarning)
        status = check_if_installed(
            packages, reason=reason, stop=False, minimum_version=minimum_version
        )

    table = Table(title="Package Check")
    table.add_column("Package", style="cyan")
    table.add_column("Installed")
    table.add_column("Version", style="dim")
    for name, installed in status.items():
        found = installed_version(name) if installed else None
        table.add_row(
            name,
            "[green]yes[/green]" if installed else "[red]no[/red]",
            str(found) if found else "-",
        )
    console.print(table)

    messages = [str(w.message) for w in caught if issubclass(w.category, InsightWarning)]
    for message in messages:
        console.print(f"[yellow]{message}[/yellow]")
    if messages:
        raise typer.Exit(code=1)


@app.command()
def variance(
    data: Annotated[
        Path,
        typer.Argument(
            help="Data file (CSV, TSV or Parquet).",
            exists=True,
            dir_okay=False,
        ),
    ],
    formula: Annotated[
        str,
        typer.Option("--formula", "-f", help="Fixed-effects formula, e.g. 'y ~ x'."),
    ],
    groups: Annotated[
        str,
        typer.Option("--groups", "-g", help="Grouping column of the random effects."),
    ],
    re_formula: Annotated[
        str | None,
        typer.Option(
            "--re-formula",
            help="Random-effects formula, e.g. '~x' for random slopes.",
        ),
    ] = None,
    component: Annotated[
        str,
        typer.Option("--component", help="Variance component to report."),
    ] = "all",
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration YAML file.",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show debug logs."),
    ] = False,
) -> None:
    """Fit a linear mixed model and print its variance decomposition."""
    import statsmodels.formula.api as smf

    from modelinsight.utils.logging import configure_logging
    from modelinsight.variance import COMPONENTS, get_variance

    if verbose:
        configure_logging("DEBUG")
    if component not in COMPONENTS:
        console.print(
            f"[red]Error: Invalid component '{component}'. "
            f"Use one of: {', '.join(COMPONENTS)}.[/red]"
        )
        raise typer.Exit(code=1)

    _use_config(config)
    frame = _read_table(data)
    if groups not in frame.columns:
        console.print(f"[red]Error: Column '{groups}' not found in {data}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[blue]Fitting mixed model: {formula} | {groups}[/blue]")
    try:
        result = smf.mixedlm(formula, frame, groups=groups, re_formula=re_formula).fit()
    except Exception as e:
        console.print(f"[red]Model fitting failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    components = get_variance(result, component=component)
    if components is None:
        console.print("[red]Could not compute variance components.[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"Variance Components ({component})")
    table.add_column("Component", style="cyan")
    table.add_column("Term")
    table.add_column("Value", style="green", justify="right")
    for name, value in components.to_dict().items():
        if isinstance(value, dict):
            for term, v in value.items():
                table.add_row(name, term, f"{v:.4f}")
        else:
            table.add_row(name, "", f"{value:.4f}")
    console.print(table)


@app.command()
def theme() -> None:
    """Print the detected console colour theme."""
    from modelinsight.console import color_theme, print_color

    detected = color_theme()
    if detected is None:
        console.print("[dim]Colour theme could not be detected.[/dim]")
    else:
        print_color(f"{detected}\n", "cyan")


if __name__ == "__main__":
    app()
