"""Reporters that only route results."""

from trest.services.api_testing.engine import Reporter, TestResult


class CollectingReporter:
    """Keeps every result in memory."""

    def __init__(self):
        self.results: list[TestResult] = []
        self.flushed = False

    def report(self, result: TestResult):
        self.results.append(result)

    def flush(self):
        self.flushed = True

    @property
    def failed(self) -> list[TestResult]:
        return [r for r in self.results if not r.passed]


class MultiReporter:
    """Forwards every result to each of the given reporters."""

    def __init__(self, *reporters: Reporter):
        self.reporters = list(reporters)

    def report(self, result: TestResult):
        for reporter in self.reporters:
            reporter.report(result)

    def flush(self):
        for reporter in self.reporters:
            reporter.flush()
