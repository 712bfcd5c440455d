"""Tests for capability probing and transport selection."""
import logging

import pytest

from bolt_web import transports
from bolt_web.errors import ConfigurationError
from bolt_web.minimal import MinimalTransport
from bolt_web.transports import probe_rich_transport, select_transport

from .conftest import requires_rich


def missing_module(name):
    raise ModuleNotFoundError(f"No module named {name!r}", name=name)


def test_auto_falls_back_to_minimal_when_fastapi_is_missing(monkeypatch, caplog):
    monkeypatch.setattr(transports, "import_module", missing_module)

    with caplog.at_level(logging.INFO, logger="bolt_web.transports"):
        assert select_transport("auto") is MinimalTransport

    assert "FastAPI not available" in caplog.text


def test_forcing_fastapi_without_it_is_a_configuration_error(monkeypatch):
    monkeypatch.setattr(transports, "import_module", missing_module)

    with pytest.raises(ConfigurationError):
        select_transport("fastapi")


def test_minimal_is_chosen_without_probing(monkeypatch):
    def unexpected_import(name):
        raise AssertionError(f"probed {name}")

    monkeypatch.setattr(transports, "import_module", unexpected_import)

    assert select_transport("minimal") is MinimalTransport


@pytest.mark.parametrize("error", [SyntaxError("broken package"), ImportError("partial install")])
def test_probe_only_swallows_missing_modules(monkeypatch, error):
    def broken_import(name):
        raise error

    monkeypatch.setattr(transports, "import_module", broken_import)

    with pytest.raises(type(error)):
        probe_rich_transport()


def test_probe_checks_every_module(monkeypatch):
    imported = []

    def record(name):
        imported.append(name)
        if name == "uvicorn":
            missing_module(name)

    monkeypatch.setattr(transports, "import_module", record)

    assert probe_rich_transport() is False
    assert imported == ["fastapi", "uvicorn"]


def test_unknown_transport_is_rejected():
    with pytest.raises(ConfigurationError):
        select_transport("gunicorn")


@requires_rich
@pytest.mark.parametrize("preference", ["auto", "fastapi", "FastAPI"])
def test_fastapi_transport_is_preferred_when_installed(preference):
    from bolt_web.app import FastAPITransport

    assert select_transport(preference) is FastAPITransport
