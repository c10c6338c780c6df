"""Tests for SystemStore file persistence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from thesystem import const
from thesystem.helpers.backup_helpers import discover_backups
from thesystem.store import SystemStore


class TestSaveAndLoad:
    """Tests for the on-disk envelope."""

    def test_save_writes_envelope(self, tmp_path: Path, base_state: dict[str, Any]) -> None:
        """Saved files hold {version, key, data}."""
        store = SystemStore(tmp_path)
        store.set_data(base_state)

        assert store.save()

        raw = json.loads(Path(store.get_storage_path()).read_text(encoding="utf-8"))
        assert raw == {"version": 1, "key": "theSystem", "data": base_state}

    def test_non_ascii_preserved(self, tmp_path: Path, base_state: dict[str, Any]) -> None:
        """Names are written as UTF-8 text, not escapes."""
        base_state["player"]["name"] = "Jinwoo 성진우"
        store = SystemStore(tmp_path)
        store.set_data(base_state)
        store.save()

        assert "성진우" in Path(store.get_storage_path()).read_text(encoding="utf-8")

    def test_no_temp_files_left(self, tmp_path: Path, base_state: dict[str, Any]) -> None:
        """Atomic writes clean up after themselves."""
        store = SystemStore(tmp_path)
        store.set_data(base_state)
        store.save()
        store.save()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["theSystem"]

    def test_unserializable_data_not_saved(self, tmp_path: Path) -> None:
        """A save failure is reported, not raised."""
        store = SystemStore(tmp_path)
        store.set_data({"bad": {1, 2}})
        assert store.save() is False
        assert not Path(store.get_storage_path()).exists()

    def test_load_bare_document(self, tmp_path: Path, base_state: dict[str, Any]) -> None:
        """Files without the envelope are read as the document itself."""
        Path(tmp_path, "theSystem").write_text(json.dumps(base_state), encoding="utf-8")
        assert SystemStore(tmp_path).load() == base_state

    def test_load_missing(self, tmp_path: Path) -> None:
        """No file means None."""
        assert SystemStore(tmp_path).load() is None


class TestInitialize:
    """Tests for startup loading."""

    def test_fresh_install(self, tmp_path: Path) -> None:
        """Without a file the default document is used."""
        store = SystemStore(tmp_path)

        assert store.initialize() is False
        assert store.data["player"]["gold"] == const.DEFAULT_PLAYER_GOLD
        assert store.data["onboarded"] is False

    def test_existing_file(self, tmp_path: Path, base_state: dict[str, Any]) -> None:
        """Saved data is loaded back."""
        writer = SystemStore(tmp_path)
        writer.set_data(base_state)
        writer.save()

        reader = SystemStore(tmp_path)
        assert reader.initialize() is True
        assert reader.data == base_state

    def test_corrupt_file_recovered(self, tmp_path: Path) -> None:
        """A corrupt file is backed up and replaced by defaults."""
        Path(tmp_path, "theSystem").write_text("{ this is not json", encoding="utf-8")
        store = SystemStore(tmp_path)

        assert store.initialize() is False
        assert store.data["onboarded"] is False
        backups = discover_backups(store)
        assert [b["tag"] for b in backups] == [const.BACKUP_TAG_RECOVERY]

    def test_custom_default_factory(self, tmp_path: Path) -> None:
        """Settings stores start from their own defaults."""
        store = SystemStore(
            tmp_path, const.STORAGE_KEY_SETTINGS, lambda: {"soundEnabled": True}
        )
        store.initialize()
        assert store.data == {"soundEnabled": True}


class TestClearAndDelete:
    """Tests for clearing and deleting the store."""

    def test_clear_data_saves_defaults(self, tmp_path: Path, base_state: dict[str, Any]) -> None:
        """Clearing resets memory and disk."""
        store = SystemStore(tmp_path)
        store.set_data(base_state)
        store.save()

        store.clear_data()

        assert SystemStore(tmp_path).load()["onboarded"] is False

    def test_delete_storage(self, tmp_path: Path, base_state: dict[str, Any]) -> None:
        """Deleting removes the file; deleting twice is harmless."""
        store = SystemStore(tmp_path)
        store.set_data(base_state)
        store.save()

        store.delete_storage()
        store.delete_storage()

        assert not Path(store.get_storage_path()).exists()
        assert store.data["onboarded"] is False
