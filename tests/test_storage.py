import json
import re

import pytest

import config as cfg
from quote import Vehicle
from storage import QuoteStore, SavedQuote, default_store_path


@pytest.fixture
def store(tmp_path):
    return QuoteStore(tmp_path / "quotes.json")


def test_empty_store(store):
    assert store.load_all() == []
    assert store.get("quote_missing") is None


def test_save_and_load(store, base_quote):
    saved = store.save("RAV4 dealer quote", base_quote, notes="first visit")
    assert re.fullmatch(r"quote_\d+_[a-z0-9]{9}", saved.id)
    assert saved.saved_at.endswith("Z")

    (loaded,) = store.load_all()
    assert loaded == saved
    assert loaded.data == base_quote
    assert store.get(saved.id).name == "RAV4 dealer quote"


def test_file_holds_one_array_under_storage_key(store, base_quote):
    store.save("a", base_quote)
    store.save("b", base_quote)
    doc = json.loads(store.path.read_text(encoding="utf-8"))
    assert list(doc) == [cfg.STORAGE_KEY]
    assert [r["name"] for r in doc[cfg.STORAGE_KEY]] == ["a", "b"]
    assert "savedAt" in doc[cfg.STORAGE_KEY][0]


def test_update_keeps_id_and_timestamp(store, base_quote):
    saved = store.save("old name", base_quote)
    cheaper = base_quote.with_changes(vehicle=Vehicle(purchase_price=42_000))
    assert store.update(saved.id, name="new name", data=cheaper, notes="haggled") is True

    updated = store.get(saved.id)
    assert updated.id == saved.id
    assert updated.saved_at == saved.saved_at
    assert updated.name == "new name"
    assert updated.data.price == 42_000
    assert updated.notes == "haggled"


def test_update_unknown_id(store, base_quote):
    store.save("x", base_quote)
    assert store.update("quote_nope", name="y") is False


def test_delete(store, base_quote):
    keep = store.save("keep", base_quote)
    drop = store.save("drop", base_quote)
    assert store.delete(drop.id) is True
    assert [q.id for q in store.load_all()] == [keep.id]


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps([1, 2, 3]),
        json.dumps({cfg.STORAGE_KEY: "oops"}),
        json.dumps({cfg.STORAGE_KEY: [{"id": "x", "name": "broken"}]}),
    ],
)
def test_corrupt_file_loads_as_empty(store, content):
    store.path.write_text(content, encoding="utf-8")
    assert store.load_all() == []


def test_saved_quote_dict_round_trip(base_quote):
    sq = SavedQuote(id="quote_1_abcdefghi", name="n", data=base_quote, saved_at="2025-01-01T00:00:00.000Z")
    assert "notes" not in sq.to_dict()
    assert SavedQuote.from_dict(sq.to_dict()) == sq


def test_store_path_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(cfg.STORE_PATH_ENV, str(tmp_path / "env.json"))
    assert default_store_path() == tmp_path / "env.json"
    assert QuoteStore().path == tmp_path / "env.json"


def _write_records(store, records):
    store.path.write_text(json.dumps({cfg.STORAGE_KEY: records}), encoding="utf-8")


def test_bad_record_is_skipped_but_kept(store, base_quote):
    good = SavedQuote(id="quote_1_goodgoodg", name="good one", data=base_quote, saved_at="2025-01-01T00:00:00.000Z")
    broken = good.to_dict()
    broken.update(id="quote_2_brokenbro", name="broken")
    broken["data"]["vehicle"]["purchasePrice"] = -1
    _write_records(store, [good.to_dict(), broken])

    assert [q.name for q in store.load_all()] == ["good one"]

    new = store.save("new", base_quote)
    assert store.update(good.id, notes="still here") is True
    assert store.delete(new.id) is True

    doc = json.loads(store.path.read_text(encoding="utf-8"))
    assert [r["name"] for r in doc[cfg.STORAGE_KEY]] == ["good one", "broken"]
    assert doc[cfg.STORAGE_KEY][0]["notes"] == "still here"
    assert doc[cfg.STORAGE_KEY][1]["data"]["vehicle"]["purchasePrice"] == -1


def test_unreadable_file_is_never_overwritten(store, base_quote):
    store.path.write_text("{not json", encoding="utf-8")
    assert store.save("new", base_quote) is None
    assert store.update("quote_1_x", name="y") is False
    assert store.delete("quote_1_x") is False
    assert store.path.read_text(encoding="utf-8") == "{not json"
