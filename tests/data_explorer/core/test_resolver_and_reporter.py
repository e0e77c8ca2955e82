from __future__ import annotations

import io
import json
import zipfile

import pytest

from data_explorer.core.exceptions import CredentialsError
from data_explorer.core.reporter import ReportCard, Reporter
from data_explorer.core.resolver import DataResolver, LoaderDataResolver, PasswordDataResolver


def test_subscribers_receive_values_in_order_until_detached():
    resolver = DataResolver()
    seen = []
    sub = resolver.subscribe(seen.append)

    resolver.emit(1)
    resolver.emit(2)
    sub.detach()
    sub.detach()
    resolver.emit(3)

    assert seen == [1, 2]
    assert resolver.subscriber_count == 0


def test_loader_resolver_emits_on_start():
    resolver = LoaderDataResolver(lambda: {"a": 1})
    seen = []
    resolver.subscribe(seen.append)

    resolver.start()

    assert seen == [{"a": 1}]


def test_password_resolver_waits_for_valid_password():
    resolver = PasswordDataResolver(loader=lambda: "data", check=lambda pw: pw == "secret")
    seen = []
    resolver.subscribe(seen.append)
    resolver.start()

    assert resolver.requires_credentials is True
    with pytest.raises(CredentialsError):
        resolver.submit("wrong")
    with pytest.raises(CredentialsError):
        resolver.submit(None)
    assert seen == []

    resolver.submit("secret")

    assert seen == ["data"]
    assert resolver.requires_credentials is False


def test_reporter_cards_and_version():
    reporter = Reporter().set_id("app")
    card = reporter.append_card(ReportCard(title="Table", text="hello"))

    assert reporter.version == 1
    assert reporter.remove_card("unknown") is False
    assert reporter.remove_card(card.id) is True
    assert reporter.cards == []
    assert reporter.version == 2

    reporter.reset()
    assert reporter.version == 3


def test_reporter_zip_contains_json_and_markdown():
    reporter = Reporter().set_id("app")
    reporter.append_card(ReportCard(title="Table", table=[{"a": 1, "b": "x"}], source="data"))

    with zipfile.ZipFile(io.BytesIO(reporter.to_zip_bytes())) as zf:
        assert sorted(zf.namelist()) == ["report.json", "report.md"]
        payload = json.loads(zf.read("report.json"))
        markdown = zf.read("report.md").decode("utf-8")

    assert payload["id"] == "app"
    assert payload["cards"][0]["title"] == "Table"
    assert markdown.startswith("# Report app")
    assert "| a | b |" in markdown
