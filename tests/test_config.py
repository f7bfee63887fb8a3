import dataclasses
import logging

import pytest

from gradecalc.config import (
    CalculatorSettings,
    GRADE_SCHEME_OPTIONS,
    GRADE_SCHEMES,
    WEIGHT_FORMAT_OPTIONS,
    WEIGHT_FORMATS,
    configure_logging,
)


def test_default_settings():
    settings = CalculatorSettings()
    assert settings.scheme == "letters"
    assert settings.weight_format == "percentage"


def test_settings_reject_unknown_values():
    with pytest.raises(ValueError):
        CalculatorSettings(scheme="numbers")
    with pytest.raises(ValueError):
        CalculatorSettings(weight_format="fraction")


def test_settings_are_frozen():
    settings = CalculatorSettings(scheme="mixed", weight_format="points")
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.scheme = "letters"


def test_ui_options_map_to_engine_values():
    assert set(GRADE_SCHEME_OPTIONS.values()) == set(GRADE_SCHEMES)
    assert set(WEIGHT_FORMAT_OPTIONS.values()) == set(WEIGHT_FORMATS)


def test_configure_logging_levels(monkeypatch):
    monkeypatch.delenv("GRADECALC_LOG_LEVEL", raising=False)
    assert configure_logging() == logging.WARNING
    assert configure_logging("debug") == logging.DEBUG
    assert logging.getLogger("gradecalc").level == logging.DEBUG

    monkeypatch.setenv("GRADECALC_LOG_LEVEL", "info")
    assert configure_logging() == logging.INFO


def test_configure_logging_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("chatty")
