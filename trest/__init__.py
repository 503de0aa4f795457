"""Declarative REST API test suites."""

__version__ = "0.8.0"
