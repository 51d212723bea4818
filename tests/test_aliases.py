"""Tests for the persistent alias store."""

import json

import pytest

from tilly.commands.aliases import AliasStore


def test_add_and_resolve(tmp_path):
    store = AliasStore(tmp_path / "aliases.json")
    store.add("Chaya", "  Tata   TEA ")
    assert store.resolve("chaya") == "tata tea"
    assert store.resolve("CHAYA") == "tata tea"
    assert "chaya" in store
    assert len(store) == 1


def test_unknown_word_passes_through_lowercased(tmp_path):
    store = AliasStore(tmp_path / "aliases.json")
    assert store.resolve("Sugar") == "sugar"


def test_survives_restart(tmp_path):
    path = tmp_path / "aliases.json"
    AliasStore(path).add("paal", "milk")
    assert AliasStore(path).resolve("paal") == "milk"
    assert json.loads(path.read_text(encoding="utf-8")) == {"paal": "milk"}


def test_save_leaves_no_temp_file(tmp_path):
    path = tmp_path / "aliases.json"
    AliasStore(path).add("paal", "milk")
    assert not (tmp_path / "aliases.tmp").exists()


def test_remove(tmp_path):
    path = tmp_path / "aliases.json"
    store = AliasStore(path)
    store.add("paal", "milk")
    store.add("ari", "rice")
    store.remove("PAAL")
    assert store.resolve("paal") == "paal"
    assert AliasStore(path).aliases() == {"ari": "rice"}


def test_remove_missing_is_noop(tmp_path):
    path = tmp_path / "aliases.json"
    store = AliasStore(path)
    store.remove("nothing")
    assert not path.exists()


def test_corrupt_file_gives_empty_map(tmp_path):
    path = tmp_path / "aliases.json"
    path.write_text("{not json", encoding="utf-8")
    assert AliasStore(path).aliases() == {}


def test_non_object_file_gives_empty_map(tmp_path):
    path = tmp_path / "aliases.json"
    path.write_text('["paal", "milk"]', encoding="utf-8")
    assert AliasStore(path).aliases() == {}


def test_empty_alias_rejected(tmp_path):
    store = AliasStore(tmp_path / "aliases.json")
    with pytest.raises(ValueError):
        store.add("  ", "milk")


def test_aliases_returns_copy(tmp_path):
    store = AliasStore(tmp_path / "aliases.json")
    store.add("paal", "milk")
    snapshot = store.aliases()
    snapshot["ari"] = "rice"
    assert "ari" not in store


def test_memory_only_store():
    store = AliasStore(path=None)
    store.add("kappi", "coffee")
    assert store.resolve("kappi") == "coffee"
