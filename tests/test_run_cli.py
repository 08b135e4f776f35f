import pytest

import run
from dermdir import config
from dermdir.http import BudgetExceededError


class FakePlacesClient:
    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.calls = 0

    def _call(self):
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with

    def search_nearby(self, lat, lng, radius_m):
        self._call()
        return []

    def search_text_all(self, query, max_pages=None):
        self._call()
        return []

    def get_place(self, place_id):
        self._call()
        return {}


@pytest.fixture(autouse=True)
def quiet_env(monkeypatch):
    monkeypatch.setattr(run, "load_env", lambda *args, **kwargs: None)
    for name in ("PLACES_QPS", "PLACES_MAX_REQUESTS", "PLACES_NEXT_PAGE_DELAY_MS"):
        monkeypatch.delenv(name, raising=False)


def test_missing_api_key_exits_before_work(monkeypatch, capsys):
    monkeypatch.delenv("GOOGLE_PLACES_API_KEY", raising=False)
    monkeypatch.setattr(run, "make_places_client", lambda *a, **k: pytest.fail("no client expected"))

    assert run.main(["--states", "CA"]) == 1
    assert "GOOGLE_PLACES_API_KEY" in capsys.readouterr().err


def test_unknown_state_exits_nonzero(monkeypatch, capsys):
    monkeypatch.setenv("GOOGLE_PLACES_API_KEY", "dummy")

    assert run.main(["--states", "CA,ZZ"]) == 1
    assert "ZZ" in capsys.readouterr().err


def test_preflight(monkeypatch, capsys):
    monkeypatch.setenv("GOOGLE_PLACES_API_KEY", "dummy")

    assert run.main(["--preflight", "--states", "ca,ny"]) == 0
    out = capsys.readouterr().out
    assert "API key: OK" in out
    assert "States: OK (2 selected)" in out
    assert "Preflight: PASS" in out


def test_dry_run_caps_requests_and_writes_nothing(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("GOOGLE_PLACES_API_KEY", "dummy")
    seen = {}

    def fake_make_client(api_key, max_requests, qps, metrics, progress=None):
        seen["max_requests"] = max_requests
        return FakePlacesClient()

    monkeypatch.setattr(run, "make_places_client", fake_make_client)
    out_dir = tmp_path / "out"

    rc = run.main(["--states", "RI", "--strategy", "city", "--dry-run", "--out", str(out_dir)])

    assert rc == 0
    assert seen["max_requests"] == config.DRY_RUN_MAX_REQUESTS
    assert not out_dir.exists()
    out = capsys.readouterr().out
    assert "Collection summary:" in out
    assert "- states completed: 1 (RI)" in out
    assert "Dry-run complete" in out


def test_budget_halt_prints_summary_and_exits_nonzero(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("GOOGLE_PLACES_API_KEY", "dummy")
    client = FakePlacesClient(fail_with=BudgetExceededError("cap reached"))
    monkeypatch.setattr(run, "make_places_client", lambda *a, **k: client)

    rc = run.main(["--states", "RI,CT", "--strategy", "grid", "--out", str(tmp_path)])

    assert rc == 1
    assert client.calls == 1
    out = capsys.readouterr().out
    assert "- states failed: 1 (RI)" in out
    assert "- halted: request budget exhausted" in out
    assert (tmp_path / "summary.txt").exists()
