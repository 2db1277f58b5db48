import logging
from decimal import Decimal

from warehouse.core.config import _env_choice, _env_decimal, _env_int
from warehouse.core.logging import configure_logging


def test_env_choice_falls_back_on_unknown_value(monkeypatch):
    monkeypatch.setenv("SHORTFALL_POLICY", "Reject ")
    assert _env_choice("SHORTFALL_POLICY", "degrade", {"degrade", "reject"}) == "reject"

    monkeypatch.setenv("SHORTFALL_POLICY", "panic")
    assert _env_choice("SHORTFALL_POLICY", "degrade", {"degrade", "reject"}) == "degrade"


def test_env_decimal_ignores_garbage_and_negatives(monkeypatch):
    monkeypatch.setenv("FALLBACK_UNIT_COST", "12.75")
    assert _env_decimal("FALLBACK_UNIT_COST", "50.00") == Decimal("12.75")

    monkeypatch.setenv("FALLBACK_UNIT_COST", "cheap")
    assert _env_decimal("FALLBACK_UNIT_COST", "50.00") == Decimal("50.00")

    monkeypatch.setenv("FALLBACK_UNIT_COST", "-3")
    assert _env_decimal("FALLBACK_UNIT_COST", "50.00") == Decimal("0")


def test_env_int_respects_minimum(monkeypatch):
    monkeypatch.setenv("TOP_PRODUCTS_DEFAULT_LIMIT", "0")
    assert _env_int("TOP_PRODUCTS_DEFAULT_LIMIT", 10, min_value=1) == 1


def test_configure_logging_sets_level_and_quietens_sql():
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG

        configure_logging("not-a-level")
        assert root.level == logging.INFO
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        root.setLevel(previous)
