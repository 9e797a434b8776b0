"""Tests for sekundebrain.logic.EntryStore."""

import pytest

from sekundebrain.errors import NotFoundError, PersistenceError, ValidationError
from sekundebrain.logic import EntryStore

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class TestCreateEntry:
    @pytest.mark.asyncio
    async def test_end_to_end_with_folder(self, store):
        folder_id = await store.create_folder("Work")
        folder = await store.get_folder(folder_id)
        await store.create_entry("A", "b", ["x, y"], folder=folder)

        entries = await store.list_entries()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.title == "A"
        assert entry.content == "b"
        assert entry.tags == ["x", "y"]
        assert entry.folder.name == "Work"

    @pytest.mark.asyncio
    async def test_defaults(self, store, t0):
        entry_id = await store.create_entry("", "body", [])
        entry = await store.get_entry(entry_id)
        assert entry.date == t0
        assert entry.is_pinned is False
        assert entry.folder is None
        assert entry.image_data is None
        assert entry.display_title == "No Title"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    async def test_empty_content_rejected(self, store, content):
        with pytest.raises(ValidationError):
            await store.create_entry("title", content, ["a"])
        assert await store.list_entries() == []

    @pytest.mark.asyncio
    async def test_blank_tags_never_stored(self, store):
        entry_id = await store.create_entry("t", "c", [" a ", "", "  ", "b,, ,c"])
        entry = await store.get_entry(entry_id)
        assert entry.tags == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_tag_order_and_duplicates(self, store):
        entry_id = await store.create_entry("t", "c", "b, a, b")
        assert (await store.get_entry(entry_id)).tags == ["b", "a", "b"]

    @pytest.mark.asyncio
    async def test_image_blob(self, store):
        entry_id = await store.create_entry("t", "c", [], image_data=PNG)
        assert (await store.get_entry(entry_id)).image_data == PNG

    @pytest.mark.asyncio
    async def test_empty_image_is_no_image(self, store):
        entry_id = await store.create_entry("t", "c", [], image_data=b"")
        assert (await store.get_entry(entry_id)).image_data is None

    @pytest.mark.asyncio
    async def test_unknown_folder(self, store):
        with pytest.raises(NotFoundError):
            await store.create_entry("t", "c", [], folder=999)
        assert await store.list_entries() == []

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, store):
        a = await store.create_entry("a", "c")
        b = await store.create_entry("b", "c")
        assert a != b


class TestUpdateEntry:
    @pytest.mark.asyncio
    async def test_keeps_date_and_pin(self, store, t0):
        entry_id = await store.create_entry("old", "old body", ["x"])
        await store.toggle_pin(entry_id)

        await store.update_entry(entry_id, "new", "new body", ["y, z"], image_data=PNG)

        entry = await store.get_entry(entry_id)
        assert entry.title == "new"
        assert entry.content == "new body"
        assert entry.tags == ["y", "z"]
        assert entry.image_data == PNG
        assert entry.date == t0
        assert entry.is_pinned is True

    @pytest.mark.asyncio
    async def test_moves_between_folders(self, store):
        work = await store.create_folder("Work")
        home = await store.create_folder("Home")
        entry_id = await store.create_entry("t", "c", [], folder=work)

        await store.update_entry(entry_id, "t", "c", [], folder=home)
        assert (await store.get_entry(entry_id)).folder.name == "Home"

        await store.update_entry(entry_id, "t", "c", [], folder=None)
        assert (await store.get_entry(entry_id)).folder is None

    @pytest.mark.asyncio
    async def test_clears_image_when_omitted(self, store):
        entry_id = await store.create_entry("t", "c", [], image_data=PNG)
        await store.update_entry(entry_id, "t", "c", [])
        assert (await store.get_entry(entry_id)).image_data is None

    @pytest.mark.asyncio
    async def test_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            await store.update_entry(42, "t", "c", [])

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, store):
        entry_id = await store.create_entry("t", "keep me", ["a"])
        with pytest.raises(ValidationError):
            await store.update_entry(entry_id, "t2", "", ["b"])
        entry = await store.get_entry(entry_id)
        assert entry.title == "t"
        assert entry.content == "keep me"
        assert entry.tags == ["a"]


class TestDeleteAndPin:
    @pytest.mark.asyncio
    async def test_delete(self, store):
        keep = await store.create_entry("keep", "c")
        gone = await store.create_entry("gone", "c", ["t"])

        await store.delete_entry(gone)

        ids = [e.id for e in await store.list_entries()]
        assert ids == [keep]
        with pytest.raises(NotFoundError):
            await store.delete_entry(gone)
        with pytest.raises(NotFoundError):
            await store.get_entry(gone)

    @pytest.mark.asyncio
    async def test_toggle_pin_twice_restores(self, store):
        entry_id = await store.create_entry("t", "c")
        assert await store.toggle_pin(entry_id) is True
        assert await store.toggle_pin(entry_id) is False
        assert (await store.get_entry(entry_id)).is_pinned is False

    @pytest.mark.asyncio
    async def test_toggle_unknown(self, store):
        with pytest.raises(NotFoundError):
            await store.toggle_pin(7)


class TestFolders:
    @pytest.mark.asyncio
    async def test_create_and_list(self, store, t0):
        folder_id = await store.create_folder("  Work  ")
        folders = await store.list_folders()
        assert [(f.id, f.name) for f in folders] == [(folder_id, "Work")]
        assert folders[0].created_at == t0

    @pytest.mark.asyncio
    async def test_names_need_not_be_unique(self, store):
        a = await store.create_folder("Work")
        b = await store.create_folder("Work")
        assert a != b

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   "])
    async def test_empty_name_rejected(self, store, name):
        with pytest.raises(ValidationError):
            await store.create_folder(name)

    @pytest.mark.asyncio
    async def test_rename(self, store):
        folder_id = await store.create_folder("Wrok")
        await store.rename_folder(folder_id, "Work")
        assert (await store.get_folder(folder_id)).name == "Work"
        with pytest.raises(NotFoundError):
            await store.rename_folder(999, "x")
        with pytest.raises(ValidationError):
            await store.rename_folder(folder_id, " ")

    @pytest.mark.asyncio
    async def test_delete_unfiles_entries(self, store):
        folder_id = await store.create_folder("Work")
        entry_id = await store.create_entry("t", "c", [], folder=folder_id)

        await store.delete_folder(folder_id)

        assert await store.list_folders() == []
        entry = await store.get_entry(entry_id)
        assert entry.folder is None
        with pytest.raises(NotFoundError):
            await store.delete_folder(folder_id)

    @pytest.mark.asyncio
    async def test_get_unknown(self, store):
        with pytest.raises(NotFoundError):
            await store.get_folder(5)


class TestNotifications:
    @pytest.mark.asyncio
    async def test_sync_and_async_listeners(self, store):
        calls = []

        async def on_change_async():
            calls.append("async")

        store.subscribe(lambda: calls.append("sync"))
        store.subscribe(on_change_async)

        await store.create_entry("t", "c")
        assert calls == ["sync", "async"]

    @pytest.mark.asyncio
    async def test_every_mutation_notifies(self, store):
        calls = []
        store.subscribe(lambda: calls.append(1))

        folder_id = await store.create_folder("F")
        entry_id = await store.create_entry("t", "c", folder=folder_id)
        await store.update_entry(entry_id, "t", "c2")
        await store.toggle_pin(entry_id)
        await store.rename_folder(folder_id, "G")
        await store.delete_folder(folder_id)
        await store.delete_entry(entry_id)

        assert len(calls) == 7

    @pytest.mark.asyncio
    async def test_failed_mutation_is_silent(self, store):
        calls = []
        store.subscribe(lambda: calls.append(1))
        with pytest.raises(ValidationError):
            await store.create_entry("t", "")
        with pytest.raises(NotFoundError):
            await store.delete_entry(1)
        assert calls == []

    @pytest.mark.asyncio
    async def test_unsubscribe(self, store):
        calls = []
        unsubscribe = store.subscribe(lambda: calls.append(1))
        unsubscribe()
        unsubscribe()
        await store.create_entry("t", "c")
        assert calls == []

    @pytest.mark.asyncio
    async def test_raising_listener_does_not_fail_mutation(self, store):
        calls = []

        def broken():
            raise RuntimeError("listener boom")

        store.subscribe(broken)
        store.subscribe(lambda: calls.append(1))

        entry_id = await store.create_entry("t", "c")

        assert (await store.get_entry(entry_id)).content == "c"
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_reads_do_not_notify(self, store):
        entry_id = await store.create_entry("t", "c")
        calls = []
        store.subscribe(lambda: calls.append(1))
        await store.list_entries()
        await store.list_folders()
        await store.get_entry(entry_id)
        assert calls == []


class TestPersistence:
    @pytest.mark.asyncio
    async def test_unwritable_location(self, tmp_path):
        store = EntryStore(tmp_path / "missing" / "journal.sqlite3")
        with pytest.raises(PersistenceError):
            await store.create_folder("Work")

    @pytest.mark.asyncio
    async def test_backup_and_restore(self, store):
        await store.create_entry("first", "c")
        backup = store.backup()
        assert backup.exists()
        assert store.list_backups() == [backup]

        await store.create_entry("second", "c")
        assert len(await store.list_entries()) == 2

        calls = []
        store.subscribe(lambda: calls.append(1))
        await store.restore(backup)

        titles = [e.title for e in await store.list_entries()]
        assert titles == ["first"]
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_restore_missing_backup(self, store, tmp_path):
        with pytest.raises(NotFoundError):
            await store.restore(tmp_path / "nope.bak")

    def test_backup_without_database(self, tmp_path):
        store = EntryStore(tmp_path / "never-created.sqlite3")
        with pytest.raises(PersistenceError):
            store.backup()
        assert store.list_backups() == []

    @pytest.mark.asyncio
    async def test_failed_restore_keeps_live_database(self, store, monkeypatch):
        await store.create_entry("first", "c")
        backup = store.backup()
        await store.create_entry("second", "c")

        def short_copy(src, dst, *args, **kwargs):
            with open(dst, "wb") as fh:
                fh.write(b"SQLite format 3\x00")
            raise OSError(28, "No space left on device")

        monkeypatch.setattr("sekundebrain.logic.shutil.copy2", short_copy)
        with pytest.raises(PersistenceError):
            await store.restore(backup)

        titles = sorted(e.title for e in await store.list_entries())
        assert titles == ["first", "second"]
        db_dir = store._resolved_db_path().parent
        assert list(db_dir.glob("*.restore-tmp")) == []
