import importlib

import pytest
from fastapi import HTTPException

from seewetter import auth


@pytest.fixture()
def production(monkeypatch):
    monkeypatch.setattr(auth, "SEEWETTER_ENV", "production")
    monkeypatch.setattr(auth, "REFRESH_TOKEN", "s3cret")


def test_scheduler_header_is_trusted(production):
    caller = auth.refresh_caller("1", None)
    assert caller.via == "scheduler"


def test_matching_bearer_token(production):
    caller = auth.refresh_caller(None, "Bearer s3cret")
    assert caller.via == "bearer"


@pytest.mark.parametrize("header", [None, "", "Bearer wrong", "s3cret", "Basic s3cret"])
def test_production_rejects_everything_else(production, header):
    assert auth.refresh_caller(None, header) is None
    with pytest.raises(HTTPException) as exc:
        auth.authorize_refresh(None, header)
    assert exc.value.status_code == 401


def test_no_token_configured_never_matches(monkeypatch):
    monkeypatch.setattr(auth, "SEEWETTER_ENV", "production")
    monkeypatch.setattr(auth, "REFRESH_TOKEN", None)
    assert auth.refresh_caller(None, "Bearer ") is None


def test_non_production_allows_manual_refresh(monkeypatch):
    monkeypatch.setattr(auth, "SEEWETTER_ENV", "preview")
    monkeypatch.setattr(auth, "REFRESH_TOKEN", None)
    assert auth.authorize_refresh(None, None).via == "non-production"


@pytest.fixture()
def reload_auth(monkeypatch):
    yield
    monkeypatch.undo()
    importlib.reload(auth)


@pytest.mark.parametrize("env", [None, ""])
def test_unset_environment_counts_as_production(monkeypatch, reload_auth, env):
    monkeypatch.delenv("SEEWETTER_REFRESH_TOKEN", raising=False)
    if env is None:
        monkeypatch.delenv("SEEWETTER_ENV", raising=False)
    else:
        monkeypatch.setenv("SEEWETTER_ENV", env)
    importlib.reload(auth)

    assert auth.SEEWETTER_ENV == "production"
    assert auth.refresh_caller(None, None) is None
    with pytest.raises(HTTPException):
        auth.authorize_refresh(None, None)
