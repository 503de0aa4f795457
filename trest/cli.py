"""trest command line."""

import logging
import sys

import click

from trest import __version__
from trest.config import Settings, get_settings
from trest.services.api_testing import SuiteRunner
from trest.services.api_testing.importers import JSONSuiteLoader
from trest.services.api_testing.reporters import ConsoleReporter, JUnitReporter, MultiReporter


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("-H", "--host", default=None, help="Server to test, e.g. http://localhost:8080")
@click.option("-d", "--debug", is_flag=True, help="Enable debug mode")
@click.option("--report-dir", default=None, help="Directory for JUnit XML reports")
@click.version_option(__version__, "-v", "--version", prog_name="trest")
def main(directory, host, debug, report_dir):
    """Run every test suite found under DIRECTORY."""
    overrides = {
        key: value
        for key, value in {"host": host, "debug": debug or None, "report_dir": report_dir}.items()
        if value is not None
    }
    settings = Settings(**overrides) if overrides else get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    loader = JSONSuiteLoader(directory)
    suites = loader.load()
    if not suites and not loader.invalid_files:
        click.echo(f"No test suites found in {directory}", err=True)
        sys.exit(1)

    reporter = MultiReporter(JUnitReporter(settings.report_dir), ConsoleReporter())
    runner = SuiteRunner(settings, reporter)
    try:
        result = runner.run(suites)
    finally:
        runner.close()

    for invalid in loader.invalid_files:
        click.secho(str(invalid), fg="yellow", err=True)

    sys.exit(0 if result.all_passed and not loader.invalid_files else 1)


if __name__ == "__main__":
    main()
