"""Tests for the HTTP API and the command line."""

import pytest

import notecalc.app as app_module
from notecalc.config import Settings
from notecalc.rates import RateProvider


class FakeResponse:
    status_code = 200

    def __init__(self, payload):
        self.payload = payload

    def json(self):
        return self.payload


class LiveSession:
    def get(self, url, params=None, timeout=None):
        if params is None:
            return FakeResponse({"result": "success", "rates": {"EUR": 0.5}})
        return FakeResponse({"bitcoin": {"usd": 40000}})


@pytest.fixture
def provider(monkeypatch):
    provider = RateProvider(http=LiveSession())
    monkeypatch.setattr(app_module, "RATE_PROVIDER", provider)
    return provider


@pytest.fixture
def client(provider):
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as client:
        yield client


def test_evaluate(client):
    response = client.post("/evaluate", json={"text": "2 + 3\n10 / 0\n\nx = $10 * 2"})
    assert response.status_code == 200
    data = response.get_json()
    lines = data["lines"]
    assert len(lines) == 4
    assert lines[0]["value"] == 5
    assert lines[0]["display"] == "5"
    assert lines[1]["value"] is None
    assert lines[1]["error"] == "÷ by 0"
    assert lines[2]["display"] is None and lines[2]["error"] is None
    assert lines[3]["unit"] == "USD"
    assert lines[3]["display"] == "$20.00"
    assert lines[3]["variable"] == "x"
    assert data["variables"] == {"x": "$20.00"}
    assert data["live_rates"] is False


def test_evaluate_with_settings(client):
    response = client.post("/evaluate", json={
        "text": "1234.5\n5 más 3",
        "language": "es",
        "thousands_separator": False,
        "precision": "2",
    })
    lines = response.get_json()["lines"]
    assert lines[0]["display"] == "1234.50"
    assert lines[1]["value"] == 8


def test_evaluate_uses_the_current_rate_snapshot(client, provider):
    provider.refresh()
    data = client.post("/evaluate", json={"text": "$10 in EUR"}).get_json()
    assert data["live_rates"] is True
    assert data["lines"][0]["value"] == pytest.approx(5)


class CountingSession(LiveSession):
    def __init__(self):
        self.calls = 0

    def get(self, url, params=None, timeout=None):
        self.calls += 1
        return super().get(url, params=params, timeout=timeout)


def test_evaluate_refreshes_stale_rates(monkeypatch):
    session = CountingSession()
    provider = RateProvider(http=session, ttl=0)
    monkeypatch.setattr(app_module, "RATE_PROVIDER", provider)
    threads = []
    start_refresh = provider.refresh_in_background

    def recording_refresh():
        thread = start_refresh()
        threads.append(thread)
        return thread

    monkeypatch.setattr(provider, "refresh_in_background", recording_refresh)

    client = app_module.app.test_client()
    first = client.post("/evaluate", json={"text": "$10 in EUR"}).get_json()
    assert first["live_rates"] is False
    assert len(threads) == 1
    threads[0].join(timeout=5)
    assert session.calls == 2

    second = client.post("/evaluate", json={"text": "$10 in EUR"}).get_json()
    assert second["live_rates"] is True
    assert second["lines"][0]["value"] == pytest.approx(5)


def test_evaluate_keeps_fresh_rates(client, provider, monkeypatch):
    provider.refresh()
    calls = []
    monkeypatch.setattr(provider, "refresh_in_background", lambda: calls.append(1))
    client.post("/evaluate", json={"text": "1 + 1"})
    assert calls == []


@pytest.mark.parametrize("payload", [
    None,
    {},
    {"text": 5},
    {"text": "1", "language": "xx"},
    {"text": "1", "precision": "7"},
])
def test_evaluate_rejects_bad_requests(client, payload):
    response = client.post("/evaluate", json=payload)
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_highlight(client):
    response = client.post("/highlight", json={"line": "5 kg in pounds # note"})
    ranges = response.get_json()["ranges"]
    assert [r["kind"] for r in ranges] == ["number", "unit", "keyword", "unit", "comment"]
    assert ranges[2] == {"kind": "keyword", "start": 5, "length": 2}


@pytest.mark.parametrize("payload", [{}, {"line": "1\n2"}, {"line": "1", "language": "xx"}])
def test_highlight_rejects_bad_requests(client, payload):
    assert client.post("/highlight", json=payload).status_code == 400


def test_languages(client):
    assert client.get("/languages").get_json() == {"en": "English", "es": "Español", "pt": "Português"}


def test_rates(client):
    data = client.get("/rates").get_json()
    assert data["live"] is False
    assert data["rates"]["USD"] == 1.0


def test_refresh_rates(client):
    data = client.post("/rates/refresh").get_json()
    assert data["live"] is True
    assert client.get("/rates").get_json()["rates"]["EUR"] == 0.5


def test_render_lines():
    lines = app_module.evaluate_file("2 + 3\n10 / 0\n\ntotal", Settings(), RateProvider(http=LiveSession()))
    assert lines[0] == "2 + 3   = 5"
    assert lines[1] == "10 / 0  ! ÷ by 0"
    assert lines[2] == ""
    assert lines[3] == "total"


def test_cli_evaluates_a_file(tmp_path, monkeypatch, capsys, provider):
    monkeypatch.setattr(app_module, "load_settings", lambda: Settings())
    note = tmp_path / "note.txt"
    note.write_text("x = 4\nx * 2\n", encoding="utf-8")

    assert app_module.run_cli_mode([str(note)]) == 0
    out = capsys.readouterr().out
    assert "x = 4  = 4" in out
    assert "x * 2  = 8" in out


def test_cli_options(tmp_path, monkeypatch, capsys, provider):
    monkeypatch.setattr(app_module, "load_settings", lambda: Settings())
    note = tmp_path / "note.txt"
    note.write_text("1234.5", encoding="utf-8")

    assert app_module.run_cli_mode([str(note), "--no-separator", "--precision", "4"]) == 0
    assert "1234.5000" in capsys.readouterr().out


def test_cli_rejects_unknown_language(monkeypatch, capsys):
    monkeypatch.setattr(app_module, "load_settings", lambda: Settings())
    assert app_module.run_cli_mode(["-", "--language", "xx"]) == 2
    assert "Error" in capsys.readouterr().err


def test_cli_missing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(app_module, "load_settings", lambda: Settings())
    assert app_module.run_cli_mode([str(tmp_path / "missing.txt")]) == 1
