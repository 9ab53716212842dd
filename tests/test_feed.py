import pytest
import requests

from conftest import TWO_MONTH_FEED, make_config
from loan_tracker import feed
from loan_tracker.errors import ConfigError, EmptyFeedError, FetchError
from loan_tracker.config import load_config


class _FakeResponse:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code
        self.encoding = None

    @property
    def ok(self):
        return 200 <= self.status_code < 400


def test_fetch_feed_returns_text(monkeypatch):
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append((url, headers, timeout))
        return _FakeResponse(TWO_MONTH_FEED)

    monkeypatch.setattr(feed.requests, "get", fake_get)
    assert feed.fetch_feed("https://example.test/feed.tsv", 5) == TWO_MONTH_FEED
    url, headers, timeout = calls[0]
    assert url == "https://example.test/feed.tsv"
    assert headers["Cache-Control"] == "no-store"
    assert timeout == 5


def test_fetch_feed_http_error(monkeypatch):
    monkeypatch.setattr(feed.requests, "get", lambda *a, **kw: _FakeResponse(status_code=404))
    with pytest.raises(FetchError, match="404"):
        feed.fetch_feed("https://example.test/feed.tsv")


def test_fetch_feed_connection_error(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(feed.requests, "get", boom)
    with pytest.raises(FetchError):
        feed.fetch_feed("https://example.test/feed.tsv")


def test_fetch_feed_requires_url():
    with pytest.raises(FetchError):
        feed.fetch_feed("")


def test_load_model_with_fetcher():
    seen = []

    def fetcher(url, timeout):
        seen.append(url)
        return TWO_MONTH_FEED

    model = feed.load_model(make_config(3_000_000), fetcher=fetcher)
    assert seen == ["https://example.test/feed.tsv"]
    assert model.summary.total_paid == 1_000_000


def test_load_model_from_file(tmp_path):
    path = tmp_path / "feed.tsv"
    path.write_text(TWO_MONTH_FEED, encoding="utf-8")
    model = feed.load_model(make_config(), feed_file=path)
    assert len(model.entries) == 2


def test_load_model_missing_file(tmp_path):
    with pytest.raises(FetchError):
        feed.load_model(make_config(), feed_file=tmp_path / "missing.tsv")


def test_load_model_propagates_empty_feed():
    with pytest.raises(EmptyFeedError):
        feed.load_model(make_config(), fetcher=lambda url, timeout: "Fecha\tMes\tValor\n")


def test_load_config_from_env():
    env = {
        "LOAN_TRACKER_TOTAL_PRINCIPAL": "42_119_181",
        "LOAN_TRACKER_FEED_URL": "https://example.test/pub?output=tsv",
        "LOAN_TRACKER_PROJECTION_MODE": "manual",
        "LOAN_TRACKER_MANUAL_MONTHLY_PAYMENT": "900000",
        "LOAN_TRACKER_REQUEST_TIMEOUT": "10",
    }
    config = load_config(env)
    assert config.total_principal == 42_119_181
    assert config.default_projection_mode == "manual"
    assert config.default_manual_monthly_payment == 900_000
    assert config.request_timeout == 10.0
    assert config.columns == ("Fecha", "Mes", "Valor")


def test_load_config_overrides_win():
    config = load_config({"LOAN_TRACKER_TOTAL_PRINCIPAL": "100"}, total_principal=200, feed_url=None)
    assert config.total_principal == 200
    assert config.feed_url == ""


@pytest.mark.parametrize(
    "env",
    [
        {},
        {"LOAN_TRACKER_TOTAL_PRINCIPAL": "0"},
        {"LOAN_TRACKER_TOTAL_PRINCIPAL": "abc"},
        {"LOAN_TRACKER_TOTAL_PRINCIPAL": "100", "LOAN_TRACKER_PROJECTION_MODE": "weekly"},
        {"LOAN_TRACKER_TOTAL_PRINCIPAL": "100", "LOAN_TRACKER_MANUAL_MONTHLY_PAYMENT": "-1"},
        {"LOAN_TRACKER_TOTAL_PRINCIPAL": "100", "LOAN_TRACKER_REQUEST_TIMEOUT": "soon"},
    ],
)
def test_load_config_rejects_invalid(env):
    with pytest.raises(ConfigError):
        load_config(env)


def test_load_model_non_utf8_file(tmp_path):
    path = tmp_path / "latin1.tsv"
    path.write_bytes("Fecha\tMes\tValor\n01/01/2024\tAño\t$1\n".encode("latin-1") + b"\xff\n")
    with pytest.raises(FetchError):
        feed.load_model(make_config(), feed_file=path)
