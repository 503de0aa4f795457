from trest.schemas.suite import Call, Expect, On, Suite, TestCase

__all__ = [
    "Call",
    "Expect",
    "On",
    "Suite",
    "TestCase",
]
