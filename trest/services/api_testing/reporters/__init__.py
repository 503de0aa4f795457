"""Result reporters."""

from trest.services.api_testing.reporters.base import CollectingReporter, MultiReporter
from trest.services.api_testing.reporters.console import ConsoleReporter
from trest.services.api_testing.reporters.junit import JUnitReporter

__all__ = [
    "CollectingReporter",
    "ConsoleReporter",
    "JUnitReporter",
    "MultiReporter",
]
