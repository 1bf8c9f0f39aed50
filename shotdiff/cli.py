"""CLI entry point for shotdiff."""

from __future__ import annotations

import logging
import sys

import click
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler

from shotdiff.models.config import DEFAULTS
from shotdiff.reporter.json_report import generate_json_report
from shotdiff.reporter.summary import build_summary_table, count_regressions
from shotdiff.resolver.readers import read_input_list
from shotdiff.resolver.resolver import resolve
from shotdiff.runner.runner import JobRunner

console = Console()

OPTION_GROUPS = {
    "Input Options": ["domain", "file", "paths", "urls", "xml"],
    "Output Options": [
        "date_subfolder", "label", "onload_script", "output_folder", "reference", "report",
    ],
    "Processing Options": [
        "parallel", "same_domain_delay", "threshold", "timeout",
        "viewport_height", "viewport_width", "wait",
    ],
}

# option -> options it cannot be combined with
CONFLICTS = {
    "file": ["xml"],
    "paths": ["urls", "file", "xml"],
    "urls": ["domain", "file", "paths"],
    "xml": ["file", "paths", "urls"],
}
IMPLIES = {"paths": ["domain"]}

EXPLICIT_SOURCES = (ParameterSource.COMMANDLINE, ParameterSource.ENVIRONMENT)
NOT_SETTINGS = ("verbose", "report", "file")


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


class GroupedCommand(click.Command):
    """Command whose --help lists options under Input/Output/Processing headings."""

    def format_options(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        grouped = {name for names in OPTION_GROUPS.values() for name in names}
        by_name = {p.name: p for p in self.get_params(ctx)}

        general = [
            rec for p in self.get_params(ctx)
            if p.name not in grouped and (rec := p.get_help_record(ctx))
        ]
        if general:
            with formatter.section("Options"):
                formatter.write_dl(general)

        for title, names in OPTION_GROUPS.items():
            records = [
                rec for name in names
                if name in by_name and (rec := by_name[name].get_help_record(ctx))
            ]
            with formatter.section(title):
                formatter.write_dl(records)


def _split_values(ctx, param, value):
    """Allow both repeated flags and space separated lists."""
    return tuple(item for v in value for item in v.split())


def _check_input_options(ctx: click.Context, explicit: set[str]) -> None:
    for name in explicit:
        for other in CONFLICTS.get(name, []):
            if other in explicit:
                raise click.UsageError(
                    f"--{name} cannot be combined with --{other}", ctx=ctx
                )
        for required in IMPLIES.get(name, []):
            if required not in explicit:
                raise click.UsageError(f"--{name} requires --{required}", ctx=ctx)


def _explicit_params(ctx: click.Context) -> set[str]:
    return {
        name for name in ctx.params
        if ctx.get_parameter_source(name) in EXPLICIT_SOURCES
    }


@click.command(
    cls=GroupedCommand,
    context_settings={"help_option_names": ["-h", "--help"], "auto_envvar_prefix": "SHOTDIFF"},
)
@click.option("--config", "-c", default=DEFAULTS.config, show_default=True,
              help="A local config file to use (JSON or YAML)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
# Input options
@click.option("--domain", help="The domain for which we want to generate screenshots")
@click.option("--file", "file", type=click.Path(dir_okay=False),
              help="A file containing paths/URLs to process (text, XML, JSON or YAML)")
@click.option("--paths", "--path", "paths", multiple=True, callback=_split_values,
              help="Relative path(s) to capture, joined to --domain")
@click.option("--urls", "--url", "urls", multiple=True, callback=_split_values,
              help="Absolute URL(s) to capture")
@click.option("--xml", type=click.Path(dir_okay=False),
              help="A local XML sitemap containing URLs to process")
# Output options
@click.option("--date-subfolder/--no-date-subfolder", default=DEFAULTS.date_subfolder,
              show_default=True, help="Place output in date/time subfolders")
@click.option("--label", help="Name of this job, used as a subfolder for the screenshots")
@click.option("--onload-script", default=DEFAULTS.onload_script, show_default=True,
              help="JS file evaluated on each page before taking the screenshot")
@click.option("--output-folder", default=DEFAULTS.output_folder, show_default=True,
              help="Folder to save screenshots into")
@click.option("--reference", "--ref", "reference",
              help="The domain hosting the reference version")
@click.option("--report/--no-report", default=True, show_default=True,
              help="Write results.json into the output folder")
# Processing options
@click.option("--parallel", type=click.IntRange(min=1), default=DEFAULTS.parallel,
              show_default=True, help="Number of pages captured in parallel (1 = sequential)")
@click.option("--same-domain-delay", type=float, default=DEFAULTS.same_domain_delay,
              show_default=True, help="Delay in seconds between requests to the same domain")
@click.option("--threshold", type=click.FloatRange(0, 100), default=DEFAULTS.threshold,
              show_default=True, help="Allowed difference as a percentage (0-100)")
@click.option("--timeout", type=float, default=DEFAULTS.timeout, show_default=True,
              help="Timeout in seconds for each capture")
@click.option("--viewport-height", "--vh", "viewport_height", type=int,
              default=DEFAULTS.viewport_height, show_default=True,
              help="Browser viewport height")
@click.option("--viewport-width", "--vw", "viewport_width", type=int,
              default=DEFAULTS.viewport_width, show_default=True,
              help="Browser viewport width")
@click.option("--wait", type=float, default=DEFAULTS.wait, show_default=True,
              help="Seconds to wait after page load before the screenshot")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, report: bool, file: str | None, **options) -> None:
    """Screenshot a set of URLs and diff them against a reference domain."""
    setup_logging(verbose)

    explicit = _explicit_params(ctx)
    _check_input_options(ctx, explicit)

    overrides = {
        name: value for name, value in ctx.params.items()
        if name in explicit and name not in NOT_SETTINGS
    }
    overrides["config"] = options["config"]
    if file:
        overrides["urls"] = read_input_list(file)

    resolution = resolve(overrides)
    if not resolution.ok:
        if resolution.errors:
            console.print("[bold red]There were errors with the following settings "
                          "in your configuration:[/bold red]")
            for error in resolution.errors:
                console.print(f"  - [bold]{error.value}[/bold]")
        else:
            console.print("[red]An unknown error occurred with your config, "
                          "please check your settings and retry.[/red]")
        sys.exit(1)

    job = resolution.job
    results = JobRunner(job).run_sync()

    if report:
        report_path = job.folder / "results.json"
        generate_json_report(job, results, report_path)
        console.print(f"  JSON report: [blue]{report_path}[/blue]")

    console.print(build_summary_table(results, job.threshold, with_reference=bool(job.reference)))

    regressions = count_regressions(results)
    if regressions:
        console.print(f"[red]{regressions} page(s) differ from the reference by more "
                      f"than {job.threshold:g}%[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli()
