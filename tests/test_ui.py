"""Smoke tests for the Textual UI using the app pilot."""

import pytest
from textual.widgets import Input, ListView

from sekundebrain.auth import hash_passcode
from sekundebrain.logic import EntryStore
from sekundebrain.settings import AppSettings, save_settings
from sekundebrain.ui import JournalHomeScreen, LockScreen, SekundeBrainApp


@pytest.fixture
def settings_path(tmp_path):
    path = tmp_path / "config.json"
    save_settings(AppSettings(passcode_hash=hash_passcode("2468")), path)
    return path


@pytest.fixture
def app(tmp_path, settings_path, clock):
    return SekundeBrainApp(
        store=EntryStore(tmp_path / "journal.sqlite3", clock=clock),
        settings_path=settings_path,
    )


async def _unlock(app, pilot, passcode):
    field = app.screen.query_one("#passcode", Input)
    field.value = passcode
    field.focus()
    await pilot.press("enter")
    await pilot.pause()


class TestLockScreen:
    @pytest.mark.asyncio
    async def test_starts_locked(self, app):
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            assert isinstance(app.screen, LockScreen)
            assert not app.gate.unlocked

    @pytest.mark.asyncio
    async def test_wrong_passcode_stays_locked(self, app):
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            await _unlock(app, pilot, "0000")
            assert isinstance(app.screen, LockScreen)
            assert not app.gate.unlocked

    @pytest.mark.asyncio
    async def test_unlock_shows_projection(self, app):
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            await app.store.create_entry("older", "c", ["work"])
            pinned_id = await app.store.create_entry("pinned", "c", ["home"])
            await app.store.toggle_pin(pinned_id)
            await app.store.create_entry("newest", "c", [])

            await _unlock(app, pilot, "2468")
            assert app.gate.unlocked
            assert isinstance(app.screen, JournalHomeScreen)
            await pilot.pause()

            pinned = app.screen.query_one("#pinned", ListView)
            unpinned = app.screen.query_one("#unpinned", ListView)
            assert [item.data for item in pinned.children] == [pinned_id]
            assert len(unpinned.children) == 2
