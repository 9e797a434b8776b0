# -*- coding: utf-8 -*-
"""Textual UI for SekundeBrain.

This file contains ONLY the UI: screens, modals, and the App wrapper.
All data access goes through ``EntryStore``; the displayed list is always
rebuilt with ``project_entries`` from fresh store snapshots.

Theme switching:
    theme.css defines two class scopes, `.theme-light` and `.theme-dark`.
    The app toggles one of these classes from the loaded settings
    ("system" renders dark in a terminal).
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Tuple

from loguru import logger
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen, Screen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Select,
    Static,
    Switch,
    TextArea,
)

from . import __version__
from .auth import AuthGate, Check, hash_passcode, verify_passcode
from .errors import JournalError
from .images import describe_image, load_image
from .logic import EntryStore
from .models import JournalEntry, JournalFolder, format_tags
from .projection import ALL_FOLDERS, folder_choices, project_entries
from .settings import (
    LANGUAGES,
    THEMES,
    AppSettings,
    ColorblindType,
    clamp_font_size,
    load_settings,
    save_settings,
)

THEME_CSS_PATH = str(Path(__file__).with_name("theme.css"))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _apply_app_theme(app: App, settings: AppSettings) -> None:
    """Attach exactly one of theme-light / theme-dark to the App."""
    target = "theme-light" if settings.theme == "light" else "theme-dark"
    for cls in ("theme-light", "theme-dark"):
        app.set_class(False, cls)
    app.set_class(True, target)


def _entry_label(entry: JournalEntry) -> str:
    when = entry.date.astimezone().strftime("%Y-%m-%d")
    parts = [when, entry.display_title]
    if entry.has_image:
        parts.append("[img]")
    if entry.tags:
        parts.append(" ".join(f"#{t}" for t in entry.tags))
    return "  ".join(parts)


def _entry_item(entry: JournalEntry) -> ListItem:
    item = ListItem(Label(_entry_label(entry), markup=False))
    item.data = entry.id
    return item


# ---------------------------------------------------------------------------
# Modals
# ---------------------------------------------------------------------------

class NewFolderModal(ModalScreen[Optional[int]]):
    """Create a folder; dismisses with the new folder id (or None)."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def compose(self) -> ComposeResult:
        yield Container(
            Static("NEW FOLDER", classes="title"),
            Input(placeholder="New Folder Name", id="folder_name"),
            Horizontal(Button("Save Folder", id="save", classes="-primary"), Button("Cancel", id="cancel")),
            id="modal-card",
            classes="layer-ui",
        )

    def action_cancel(self) -> None:
        self.dismiss(None)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save":
            name = self.query_one("#folder_name", Input).value
            try:
                folder_id = await self.app.store.create_folder(name)
            except JournalError as exc:
                self.app.notify(str(exc), severity="error")
                return
            self.app.notify(f"Folder {name.strip()!r} created.")
            self.dismiss(folder_id)
        elif event.button.id == "cancel":
            self.dismiss(None)


class EntryFormModal(ModalScreen[Optional[int]]):
    """New or edit entry form. Failed saves keep everything the user typed."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, entry_id: Optional[int] = None) -> None:
        super().__init__()
        self.entry_id = entry_id
        self.image_data: Optional[bytes] = None

    def compose(self) -> ComposeResult:
        heading = "EDIT ENTRY" if self.entry_id is not None else "NEW ENTRY"
        with VerticalScroll(id="modal-card", classes="layer-ui"):
            yield Static(heading, classes="title")
            yield Input(placeholder="Entry title", id="title")
            yield TextArea(id="content")
            yield Input(placeholder="Enter tags (comma separated)", id="tags")
            with Horizontal(id="folder-row"):
                yield Select([], prompt="No Folder", id="folder")
                yield Button("Create New Folder", id="new_folder")
            yield Static("(no image)", id="image_info", classes="hint")
            with Horizontal(id="image-row"):
                yield Input(placeholder="image path (optional)", id="image_path")
                yield Button("Remove Image", id="clear_image")
            with Horizontal():
                yield Button("Save", id="save", classes="-primary")
                yield Button("Cancel", id="cancel")

    async def on_mount(self) -> None:
        await self._load_folders()
        if self.entry_id is None:
            return
        try:
            entry = await self.app.store.get_entry(self.entry_id)
        except JournalError as exc:
            self.app.notify(str(exc), severity="error")
            self.dismiss(None)
            return
        self.query_one("#title", Input).value = entry.title
        self.query_one("#content", TextArea).text = entry.content
        self.query_one("#tags", Input).value = format_tags(entry.tags)
        if entry.folder_id is not None:
            self.query_one("#folder", Select).value = entry.folder_id
        self.image_data = entry.image_data
        self.query_one("#image_info", Static).update(describe_image(self.image_data))

    async def _load_folders(self, select_id: Optional[int] = None) -> None:
        folders = await self.app.store.list_folders()
        # The form's picker lists folders oldest first.
        folders.sort(key=lambda f: (f.created_at, f.id))
        select = self.query_one("#folder", Select)
        current = select.value
        select.set_options([(f.name, f.id) for f in folders])
        keep = select_id if select_id is not None else current
        if isinstance(keep, int) and any(f.id == keep for f in folders):
            select.value = keep

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _folder_created(self, folder_id: Optional[int]) -> None:
        if folder_id is not None:
            self.run_worker(self._load_folders(select_id=folder_id), exclusive=True)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "save":
            await self._save()
        elif bid == "new_folder":
            self.app.push_screen(NewFolderModal(), self._folder_created)
        elif bid == "clear_image":
            self.image_data = None
            self.query_one("#image_path", Input).value = ""
            self.query_one("#image_info", Static).update(describe_image(None))
        elif bid == "cancel":
            self.dismiss(None)

    async def _save(self) -> None:
        title = self.query_one("#title", Input).value
        content = self.query_one("#content", TextArea).text
        tags = self.query_one("#tags", Input).value
        folder_value = self.query_one("#folder", Select).value
        folder_id = folder_value if isinstance(folder_value, int) else None
        store: EntryStore = self.app.store
        try:
            image_data = load_image(self.query_one("#image_path", Input).value) or self.image_data
            if self.entry_id is None:
                entry_id = await store.create_entry(title, content, tags, image_data, folder_id)
                self.app.notify("Entry saved")
            else:
                entry_id = self.entry_id
                await store.update_entry(entry_id, title, content, tags, image_data, folder_id)
                self.app.notify("Entry updated")
        except JournalError as exc:
            logger.warning("Save failed: {}", exc)
            self.app.notify(str(exc), severity="error")
            return
        self.dismiss(entry_id)


class ConfirmDeleteModal(ModalScreen[bool]):
    """Confirm deleting an entry; dismisses True once deleted."""

    def __init__(self, entry_id: int) -> None:
        super().__init__()
        self.entry_id = entry_id

    def compose(self) -> ComposeResult:
        yield Container(
            Static("DELETE ENTRY?", classes="title"),
            Static("This cannot be undone."),
            Horizontal(
                Button("Delete", id="yes", classes="-primary"),
                Button("Cancel", id="no"),
            ),
            id="modal-card",
            classes="layer-ui",
        )

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if (event.button.id or "") == "yes":
            try:
                await self.app.store.delete_entry(self.entry_id)
            except JournalError as exc:
                self.app.notify(str(exc), severity="error")
                self.dismiss(False)
                return
            self.app.notify("Entry deleted")
            self.dismiss(True)
        else:
            self.dismiss(False)


class SettingsModal(ModalScreen[None]):
    """Appearance, accessibility, language, passcode and backups."""

    BINDINGS = [Binding("escape", "close", "Close")]

    def compose(self) -> ComposeResult:
        s: AppSettings = self.app.app_settings
        with VerticalScroll(id="modal-card", classes="layer-ui"):
            yield Static("SETTINGS", classes="title")

            yield Static("Appearance", classes="hint")
            yield Select([(t.capitalize(), t) for t in THEMES], value=s.theme, allow_blank=False, id="theme")
            yield Input(value=str(s.font_size), placeholder="font size (10-30)", id="font_size")

            yield Static("Accessibility", classes="hint")
            yield Select(
                [(c.value, c.value) for c in ColorblindType],
                value=s.colorblind_mode.value,
                allow_blank=False,
                id="colorblind",
            )
            yield Static(s.colorblind_mode.description, id="colorblind_info", classes="hint")
            yield Static(f"Accent {s.accent_hex()}", id="accent")

            yield Static("Notifications", classes="hint")
            yield Switch(value=s.notifications_enabled, id="notifications")

            yield Static("Language", classes="hint")
            yield Select([(lang, lang) for lang in LANGUAGES], value=s.language, allow_blank=False, id="language")

            yield Static("Passcode", classes="hint")
            yield Input(placeholder="current passcode", password=True, id="pc_current")
            yield Input(placeholder="new passcode", password=True, id="pc_new")
            yield Input(placeholder="confirm new", password=True, id="pc_confirm")
            yield Button("Change Passcode", id="change_passcode")

            yield Static("Backup & Restore", classes="hint")
            yield Horizontal(
                Button("Backup Data", id="backup"),
                Button("Restore Latest Backup", id="restore"),
            )

            yield Horizontal(Button("Save", id="save", classes="-primary"), Button("Close", id="close"))

    def on_mount(self) -> None:
        self._paint_accent()

    def _paint_accent(self) -> None:
        self.query_one("#accent", Static).styles.background = self.app.app_settings.accent_hex()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "colorblind" and isinstance(event.value, str):
            mode = ColorblindType(event.value)
            self.query_one("#colorblind_info", Static).update(mode.description)

    def action_close(self) -> None:
        self.dismiss(None)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "save":
            self._save()
        elif bid == "change_passcode":
            self._change_passcode()
        elif bid == "backup":
            try:
                path = self.app.store.backup()
            except JournalError as exc:
                self.app.notify(str(exc), severity="error")
                return
            self.app.notify(f"Backup written to {path}")
        elif bid == "restore":
            backups = self.app.store.list_backups()
            if not backups:
                self.app.notify("No backups found", severity="warning")
                return
            try:
                await self.app.store.restore(backups[0])
            except JournalError as exc:
                self.app.notify(str(exc), severity="error")
                return
            self.app.notify(f"Restored {backups[0].name}")
        elif bid == "close":
            self.dismiss(None)

    def _save(self) -> None:
        s: AppSettings = self.app.app_settings
        s.theme = str(self.query_one("#theme", Select).value)
        s.colorblind_mode = ColorblindType(str(self.query_one("#colorblind", Select).value))
        s.language = str(self.query_one("#language", Select).value)
        s.notifications_enabled = self.query_one("#notifications", Switch).value
        raw_size = self.query_one("#font_size", Input).value.strip()
        if raw_size.isdigit():
            s.font_size = clamp_font_size(int(raw_size))
        self.app.save_app_settings()
        _apply_app_theme(self.app, s)
        self._paint_accent()
        self.app.notify("Settings saved.")

    def _change_passcode(self) -> None:
        s: AppSettings = self.app.app_settings
        current = self.query_one("#pc_current", Input).value
        new = self.query_one("#pc_new", Input).value
        confirm = self.query_one("#pc_confirm", Input).value
        if s.passcode_hash and not verify_passcode(s.passcode_hash, current):
            self.app.notify("Invalid passcode", severity="error")
            return
        if not new or new != confirm:
            self.app.notify("New passcodes do not match", severity="error")
            return
        s.passcode_hash = hash_passcode(new)
        self.app.save_app_settings()
        for wid in ("#pc_current", "#pc_new", "#pc_confirm"):
            self.query_one(wid, Input).value = ""
        self.app.notify("Passcode updated.")


class AboutModal(ModalScreen[None]):
    BINDINGS = [Binding("escape", "close", "Close")]

    def compose(self) -> ComposeResult:
        yield Container(
            Static("ABOUT", classes="title"),
            Static(f"SekundeBrain {__version__}"),
            Static("A private journal: dated entries, tags, folders and pins.", classes="hint"),
            Button("Close", id="close"),
            id="modal-card",
            classes="layer-ui",
        )

    def action_close(self) -> None:
        self.dismiss(None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(None)


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------

class LockScreen(Screen):
    """Unlock gate. After success, JournalHomeScreen is pushed on top.

    ESC from here quits the app.
    """

    BINDINGS = [Binding("escape", "app.quit", "Quit")]

    def compose(self) -> ComposeResult:
        has_passcode = bool(self.app.app_settings.passcode_hash)
        yield Header()
        with Container(id="modal-card", classes="layer-ui"):
            yield Static("LOCKED", classes="title")
            yield Static("Please authenticate to access the application...", classes="hint")
            if has_passcode:
                yield Input(placeholder="passcode", password=True, id="passcode")
                yield Horizontal(Button("Unlock Journal", id="unlock", classes="-primary"), Button("Exit", id="exit"))
            else:
                yield Static("Set a passcode to protect your journal.", classes="hint")
                yield Input(placeholder="new passcode", password=True, id="new_passcode")
                yield Input(placeholder="confirm", password=True, id="confirm_passcode")
                yield Horizontal(Button("Set Passcode", id="set_passcode", classes="-primary"), Button("Exit", id="exit"))
        yield Footer()

    async def on_mount(self) -> None:
        # Biometrics, when wired in, are tried before any passcode is typed.
        if self.app.gate.biometric is not None and self.app.app_settings.passcode_hash:
            await self._unlock(lambda: False)

    def _passcode_check(self) -> Check:
        typed = self.query_one("#passcode", Input).value
        pwd_hash = self.app.app_settings.passcode_hash
        return lambda: verify_passcode(pwd_hash, typed)

    async def _unlock(self, passcode_check: Check) -> None:
        gate: AuthGate = self.app.gate
        if gate.request_unlock(passcode_check):
            await self.app.push_screen(JournalHomeScreen())
        else:
            self.app.notify("Authentication failed. Try again.", severity="warning")

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "passcode":
            await self._unlock(self._passcode_check())

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "unlock":
            await self._unlock(self._passcode_check())
            self.query_one("#passcode", Input).value = ""
        elif bid == "set_passcode":
            new = self.query_one("#new_passcode", Input).value
            confirm = self.query_one("#confirm_passcode", Input).value
            if new != confirm:
                self.app.notify("Passcodes do not match", severity="error")
                return
            try:
                self.app.app_settings.passcode_hash = hash_passcode(new)
            except JournalError as exc:
                self.app.notify(str(exc), severity="error")
                return
            self.app.save_app_settings()
            await self.recompose()
        elif bid == "exit":
            self.app.exit()


class JournalHomeScreen(Screen):
    """Filter bar, folder picker, and the pinned / unpinned entry lists."""

    BINDINGS = [
        Binding("n", "new_entry", "New"),
        Binding("e", "edit_entry", "Edit"),
        Binding("p", "toggle_pin", "Pin"),
        Binding("d", "delete_entry", "Delete"),
        Binding("f", "new_folder", "Folder"),
        Binding("s", "settings", "Settings"),
        Binding("a", "about", "About"),
        Binding("escape", "lock", "Lock"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.filter_text = ""
        self.selected_folder: Optional[int] = None
        self._folder_options: List[Tuple[str, Optional[int]]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="home", classes="layer-ui"):
            yield Input(placeholder="Filter by tag or mood", id="filter")
            yield Select([], prompt=ALL_FOLDERS, id="folder_filter")
            yield Static("PINNED", id="pinned_label", classes="hint")
            yield ListView(id="pinned")
            yield Static("ENTRIES", classes="hint")
            yield ListView(id="unpinned")
        yield Footer()

    async def on_mount(self) -> None:
        self.title = "My Journal"
        self._unsubscribe = self.app.store.subscribe(self.refresh_list)
        await self.refresh_list()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()

    async def refresh_list(self) -> None:
        """Recompute the projection from fresh store snapshots."""
        try:
            entries = await self.app.store.list_entries()
            folders = await self.app.store.list_folders()
        except JournalError as exc:
            self.app.notify(str(exc), severity="error")
            return

        self._sync_folder_picker(folders)
        view = project_entries(entries, folders, self.filter_text, self.selected_folder)

        pinned = self.query_one("#pinned", ListView)
        unpinned = self.query_one("#unpinned", ListView)
        pinned.clear()
        unpinned.clear()
        for entry in view.pinned:
            pinned.append(_entry_item(entry))
        for entry in view.unpinned:
            unpinned.append(_entry_item(entry))
        pinned.display = bool(view.pinned)
        self.query_one("#pinned_label", Static).display = bool(view.pinned)

    def _sync_folder_picker(self, folders: List[JournalFolder]) -> None:
        options = folder_choices(folders)[1:]
        if options == self._folder_options:
            return
        self._folder_options = options
        if self.selected_folder is not None and not any(fid == self.selected_folder for _, fid in options):
            self.selected_folder = None
        select = self.query_one("#folder_filter", Select)
        with self.prevent(Select.Changed):
            select.set_options(options)
            if self.selected_folder is not None:
                select.value = self.selected_folder

    async def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "filter":
            self.filter_text = event.value
            await self.refresh_list()

    async def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "folder_filter":
            self.selected_folder = event.value if isinstance(event.value, int) else None
            await self.refresh_list()

    async def on_list_view_selected(self, message: ListView.Selected) -> None:
        await self.app.push_screen(ViewEntryScreen(entry_id=message.item.data))

    def _current_entry_id(self) -> Optional[int]:
        focused = self.focused
        lists = [focused] if isinstance(focused, ListView) else []
        lists += [self.query_one("#pinned", ListView), self.query_one("#unpinned", ListView)]
        for lv in lists:
            item = lv.highlighted_child
            if item is not None:
                return item.data
        return None

    def action_new_entry(self) -> None:
        self.app.push_screen(EntryFormModal())

    def action_edit_entry(self) -> None:
        eid = self._current_entry_id()
        if eid is not None:
            self.app.push_screen(EntryFormModal(entry_id=eid))

    async def action_toggle_pin(self) -> None:
        eid = self._current_entry_id()
        if eid is None:
            return
        try:
            pinned = await self.app.store.toggle_pin(eid)
        except JournalError as exc:
            self.app.notify(str(exc), severity="error")
            return
        self.app.notify("Pinned" if pinned else "Unpinned")

    def action_delete_entry(self) -> None:
        eid = self._current_entry_id()
        if eid is not None:
            self.app.push_screen(ConfirmDeleteModal(eid))

    def action_new_folder(self) -> None:
        self.app.push_screen(NewFolderModal())

    def action_settings(self) -> None:
        self.app.push_screen(SettingsModal())

    def action_about(self) -> None:
        self.app.push_screen(AboutModal())

    def action_lock(self) -> None:
        self.app.gate.lock()
        self.app.pop_screen()


class ViewEntryScreen(Screen):
    """Read-only view of a single entry."""

    BINDINGS = [Binding("escape", "app.pop_screen", "Back")]

    def __init__(self, entry_id: int) -> None:
        super().__init__()
        self.entry_id = entry_id
        self._unsubscribe: Optional[Callable[[], None]] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="modal-card", classes="layer-ui"):
            yield Static("", id="entry_title", classes="title", markup=False)
            yield Static("", id="meta", classes="hint", markup=False)
            yield Static("", id="image", classes="hint")
            yield Static("", id="entry_tags", markup=False)
            yield TextArea(id="entry-text", read_only=True)
            with Horizontal(id="actions"):
                yield Button("Edit", id="edit", classes="-primary")
                yield Button("Pin", id="pin")
                yield Button("Delete", id="delete")
                yield Button("Back", id="back")
        yield Footer()

    async def on_mount(self) -> None:
        self._unsubscribe = self.app.store.subscribe(self.reload)
        await self.reload()
        self.set_focus(self.query_one("#entry-text", TextArea))

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()

    async def reload(self) -> None:
        try:
            entry = await self.app.store.get_entry(self.entry_id)
        except JournalError:
            # Deleted underneath us; the delete flow pops this screen.
            return
        self.title = "Contents"
        self.query_one("#entry_title", Static).update(entry.display_title)
        when = entry.date.astimezone().strftime("%A, %d %B %Y %H:%M")
        folder = entry.folder.name if entry.folder else "Unfiled"
        pin = "  [pinned]" if entry.is_pinned else ""
        self.query_one("#meta", Static).update(f"{when}  ·  {folder}{pin}")
        self.query_one("#image", Static).update(describe_image(entry.image_data))
        self.query_one("#entry_tags", Static).update(" ".join(f"#{t}" for t in entry.tags))
        self.query_one("#entry-text", TextArea).text = entry.content
        self.query_one("#pin", Button).label = "Unpin" if entry.is_pinned else "Pin"

    def _after_delete(self, deleted: Optional[bool]) -> None:
        if deleted:
            self.app.pop_screen()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "back":
            self.app.pop_screen()
        elif bid == "edit":
            self.app.push_screen(EntryFormModal(self.entry_id))
        elif bid == "pin":
            try:
                await self.app.store.toggle_pin(self.entry_id)
            except JournalError as exc:
                self.app.notify(str(exc), severity="error")
        elif bid == "delete":
            self.app.push_screen(ConfirmDeleteModal(self.entry_id), self._after_delete)


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

class SekundeBrainApp(App):
    """Textual App wrapper. Owns the store, settings and unlock gate."""

    TITLE = "SEKUNDEBRAIN"
    CSS_PATH = THEME_CSS_PATH

    def __init__(
        self,
        store: Optional[EntryStore] = None,
        settings_path: Optional[Path] = None,
        biometric: Optional[Check] = None,
    ) -> None:
        super().__init__()
        self.settings_path = settings_path
        self.app_settings = load_settings(settings_path)
        self.store = store or EntryStore()
        self.gate = AuthGate(biometric=biometric)

    def save_app_settings(self) -> None:
        save_settings(self.app_settings, self.settings_path)

    async def on_mount(self) -> None:
        await self.store.init()
        _apply_app_theme(self, self.app_settings)
        await self.push_screen(LockScreen())

    def on_unmount(self) -> None:
        self.save_app_settings()
