"""Human readable console output."""

import click

from trest.services.api_testing.engine import TestResult


class ConsoleReporter:
    """Prints one line per call and a summary on flush."""

    def __init__(self, color: bool | None = None):
        self.color = color
        self.total = 0
        self.failed = 0
        self.duration_ms = 0

    def report(self, result: TestResult):
        self.total += 1
        self.duration_ms += result.duration_ms or 0

        if result.passed:
            click.secho("PASSED", fg="green", nl=False, color=self.color)
        else:
            self.failed += 1
            click.secho("FAILED", fg="red", nl=False, color=self.color)

        click.echo(f" {result.description} ({result.duration_ms or 0}ms)", color=self.color)
        if result.cause:
            for line in str(result.cause).splitlines():
                click.echo(f"\t{line}", color=self.color)

    def flush(self):
        passed = self.total - self.failed
        summary = f"\n{self.total} calls, {passed} passed, {self.failed} failed in {self.duration_ms}ms"
        click.secho(summary, fg="red" if self.failed else "green", bold=True, color=self.color)
