import decimal
import json

import pytest

from deposit_bridge.main import main


@pytest.fixture(autouse=True)
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("DEPOSIT_BRIDGE_API_URL", "https://bridge.example.com")
    monkeypatch.setenv("DEPOSIT_DB_URL", f"sqlite:///{tmp_path / 'deposits.sqlite'}")
    monkeypatch.delenv("DEPOSIT_SENTRY_DSN", raising=False)
    monkeypatch.delenv("DEPOSIT_DISCORD_WEBHOOK_URL", raising=False)
    monkeypatch.delenv("DEPOSIT_SLACK_WEBHOOK_URL", raising=False)


@pytest.fixture(autouse=True)
def decimal_context(monkeypatch):
    # main sets the process wide decimal context, keep it from leaking into other tests
    monkeypatch.setattr(decimal, "DefaultContext", decimal.DefaultContext.copy())
    context = decimal.getcontext()
    yield
    decimal.setcontext(context)


def test_service_fee(capsys):
    main(["service-fee", "0.0005"])

    assert json.loads(capsys.readouterr().out) == {"serviceFee": "0.00003000"}
    assert decimal.getcontext().traps[decimal.FloatOperation]


def test_attempts_of_unknown_sender(capsys):
    main(["attempts", "bc1qexampleaddress"])

    assert json.loads(capsys.readouterr().out) == []


def test_unknown_command():
    with pytest.raises(SystemExit):
        main(["deposit"])
