from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QSettings, Qt, QTimer, QUrl
from PySide6.QtGui import QAction, QKeySequence, QTextCursor
from PySide6.QtWidgets import (
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPlainTextEdit,
    QPushButton,
    QSplitter,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from mdkb.core.errors import InvalidName, InvalidReference, PersistenceError
from mdkb.core.models import Marker, NavigationEntry
from mdkb.core.tasks import toggle_task
from mdkb.services.knowledge_base import KnowledgeBase
from mdkb.services.markdown_renderer import MarkdownRenderer
from mdkb.settings import APP_TITLE, SettingsKeys, normalize_theme, preview_debounce_ms
from mdkb.ui.dialogs import ask_text, confirm, inform, show_error
from mdkb.ui.qt_utils import blocked_signals, get_bool, get_str, safe_set_setting
from mdkb.ui.ui_state import UiStateStore
from mdkb.ui.webview import PreviewView

log = logging.getLogger(__name__)

ID_ROLE = Qt.UserRole


def _button(text: str, slot) -> QPushButton:
    btn = QPushButton(text)
    btn.clicked.connect(slot)
    return btn


def _row(*widgets: QWidget) -> QHBoxLayout:
    row = QHBoxLayout()
    for w in widgets:
        row.addWidget(w)
    return row


class MainWindow(QMainWindow):
    def __init__(self, kb: KnowledgeBase, *, settings: QSettings):
        super().__init__()
        self.kb = kb
        self._settings = settings
        self.setWindowTitle(APP_TITLE)

        self.current_note: str | None = None
        self._last_saved_text = ""
        self._last_preview_source: str | None = None

        self._theme = normalize_theme(get_str(settings, SettingsKeys.UI_THEME, "light"))
        self._renderer = MarkdownRenderer(theme=self._theme)

        # ---- left: categories + notes ----
        self.categories = QListWidget()
        self.notes = QListWidget()

        left = QWidget()
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(8, 8, 8, 8)
        left_layout.addWidget(QLabel("Categories"))
        left_layout.addWidget(self.categories)
        left_layout.addLayout(_row(
            _button("New category", self.add_category),
            _button("Rename", self.rename_selected_category),
            _button("Refresh", self.refresh_categories),
        ))
        left_layout.addWidget(QLabel("Notes"))
        left_layout.addWidget(self.notes)
        left_layout.addLayout(_row(
            _button("New", self.add_note),
            _button("Import", self.import_notes),
        ))
        left_layout.addLayout(_row(
            _button("Rename", self.rename_current_note),
            _button("Delete", self.delete_selected_note),
        ))

        # ---- center: editor + preview ----
        self.editor = QPlainTextEdit()
        self.editor.setPlaceholderText("Select a note…")
        self.preview = PreviewView()

        # ---- right: markers + links ----
        self.source_markers = QListWidget()
        self.target_markers = QListWidget()
        self.link_list = QListWidget()

        markers_box = QGroupBox("Markers")
        markers_layout = QVBoxLayout(markers_box)
        markers_layout.addWidget(QLabel("Source"))
        markers_layout.addWidget(self.source_markers)
        markers_layout.addWidget(_button("Add source marker at caret", self.add_source_marker))
        markers_layout.addWidget(QLabel("Target"))
        markers_layout.addWidget(self.target_markers)
        markers_layout.addWidget(_button("Add target marker at caret", self.add_target_marker))
        markers_layout.addLayout(_row(
            _button("Delete marker", self.delete_selected_marker),
            _button("Create link", self.create_link),
        ))

        links_box = QGroupBox("Links")
        links_layout = QVBoxLayout(links_box)
        links_layout.addWidget(self.link_list)
        links_layout.addLayout(_row(
            _button("Jump", self.jump_selected_link),
            _button("Back", self.nav_back),
            _button("Delete link", self.delete_selected_link),
        ))

        right = QWidget()
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(8, 8, 8, 8)
        right_layout.addWidget(markers_box, 3)
        right_layout.addWidget(links_box, 2)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.addWidget(left)
        self.splitter.addWidget(self.editor)
        self.splitter.addWidget(self.preview)
        self.splitter.addWidget(right)
        self.splitter.setStretchFactor(0, 1)
        self.splitter.setStretchFactor(1, 3)
        self.splitter.setStretchFactor(2, 3)
        self.splitter.setStretchFactor(3, 1)
        self.setCentralWidget(self.splitter)

        self._ui_state = UiStateStore(owner=self, settings=settings, splitter=self.splitter)

        # Preview debounce: don't render markdown on every keystroke
        self.preview_timer = QTimer(self)
        self.preview_timer.setSingleShot(True)
        self.preview_timer.timeout.connect(self._render_preview_from_editor)

        # Signals
        self.categories.currentItemChanged.connect(self._on_category_changed)
        self.notes.currentItemChanged.connect(self._on_note_changed)
        self.editor.textChanged.connect(self._on_text_changed)
        self.preview.taskToggled.connect(self._on_task_toggled)
        self.link_list.itemDoubleClicked.connect(lambda _it: self.jump_selected_link())
        self.splitter.splitterMoved.connect(lambda *_: self._ui_state.schedule_save())

        self._build_actions()

        self._ui_state.restore()
        editor_visible = get_bool(settings, SettingsKeys.UI_EDITOR_VISIBLE, True)
        preview_visible = get_bool(settings, SettingsKeys.UI_PREVIEW_VISIBLE, True)
        self.editor.setHidden(not editor_visible)
        self.preview.setHidden(not preview_visible)
        self._act_editor.setChecked(editor_visible)
        self._act_preview.setChecked(preview_visible)

        self.refresh_categories()
        self.refresh_markers_and_links()
        self._render_preview("")

    # ───────────────────────── actions ─────────────────────────

    def _build_actions(self) -> None:
        toolbar = QToolBar("Main")
        toolbar.setObjectName("main_toolbar")
        self.addToolBar(toolbar)

        act_save = QAction("Save", self)
        act_save.setShortcut(QKeySequence.Save)
        act_save.triggered.connect(self.save_current_note)

        act_rename = QAction("Rename note…", self)
        act_rename.setShortcut("F2")
        act_rename.triggered.connect(self.rename_current_note)

        act_back = QAction("Back", self)
        act_back.setShortcut("Alt+Left")
        act_back.triggered.connect(self.nav_back)

        self._act_editor = QAction("Editor", self, checkable=True)
        self._act_editor.setChecked(True)
        self._act_editor.triggered.connect(self.toggle_editor)

        self._act_preview = QAction("Preview", self, checkable=True)
        self._act_preview.setChecked(True)
        self._act_preview.triggered.connect(self.toggle_preview)

        self._act_theme = QAction(self._theme_action_text(), self)
        self._act_theme.triggered.connect(self.toggle_theme)

        for act in (act_save, act_rename, act_back):
            toolbar.addAction(act)
        toolbar.addSeparator()
        for act in (self._act_editor, self._act_preview, self._act_theme):
            toolbar.addAction(act)

    def _theme_action_text(self) -> str:
        return "Light mode" if self._theme == "dark" else "Dark mode"

    def toggle_editor(self) -> None:
        visible = self.editor.isHidden()
        self.editor.setVisible(visible)
        self._act_editor.setChecked(visible)
        safe_set_setting(self._settings, SettingsKeys.UI_EDITOR_VISIBLE, visible)

    def toggle_preview(self) -> None:
        visible = self.preview.isHidden()
        self.preview.setVisible(visible)
        self._act_preview.setChecked(visible)
        safe_set_setting(self._settings, SettingsKeys.UI_PREVIEW_VISIBLE, visible)

    def toggle_theme(self) -> None:
        self._theme = "light" if self._theme == "dark" else "dark"
        self._renderer.theme = self._theme
        self._act_theme.setText(self._theme_action_text())
        safe_set_setting(self._settings, SettingsKeys.UI_THEME, self._theme)
        self._render_preview(self.editor.toPlainText(), force=True)

    # ───────────────────────── categories / notes ─────────────────────────

    def _selected_category(self) -> str | None:
        item = self.categories.currentItem()
        return item.text() if item else None

    def refresh_categories(self) -> None:
        current = self._selected_category()
        with blocked_signals(self.categories):
            self.categories.clear()
            for name in self.kb.repo.list_categories():
                self.categories.addItem(name)
        if current:
            self._select_category(current)

    def _select_category(self, category: str) -> None:
        matches = self.categories.findItems(category, Qt.MatchExactly)
        if not matches:
            return
        with blocked_signals(self.categories):
            self.categories.setCurrentItem(matches[0])
        self.load_notes(category)

    def load_notes(self, category: str) -> None:
        with blocked_signals(self.notes):
            self.notes.clear()
            for note in self.kb.repo.list_notes(category):
                item = QListWidgetItem(note.name)
                item.setData(ID_ROLE, note.path)
                self.notes.addItem(item)
                if note.path == self.current_note:
                    self.notes.setCurrentItem(item)

    def _on_category_changed(self, current, _previous) -> None:
        if current is not None:
            self.load_notes(current.text())

    def _on_note_changed(self, current, _previous) -> None:
        if current is None:
            return
        note_path = current.data(ID_ROLE)
        if note_path != self.current_note:
            self.open_note_at(note_path, 0)

    def add_category(self) -> None:
        name = ask_text(self, "New category", "Category name:")
        if not name:
            return
        try:
            category = self.kb.repo.create_category(name)
        except (InvalidName, OSError) as e:
            log.warning("Create category failed: %s", e)
            show_error(self, "New category", str(e))
            return
        self.refresh_categories()
        self._select_category(category)

    def add_note(self) -> None:
        category = self._selected_category()
        if category is None:
            inform(self, "New note", "Select a category first.")
            return
        name = ask_text(self, "New note", "Note name:")
        if not name:
            return
        try:
            note_path = self.kb.repo.create_note(category, name)
        except (InvalidName, OSError) as e:
            log.warning("Create note failed: %s", e)
            show_error(self, "New note", str(e))
            return
        self.open_note_at(note_path, 0)

    def import_notes(self) -> None:
        category = self._selected_category()
        if category is None:
            inform(self, "Import", "Select a category first.")
            return
        files, _ = QFileDialog.getOpenFileNames(
            self, "Import Markdown files", "", "Markdown files (*.md);;All files (*.*)"
        )
        if not files:
            return

        def overwrite(note_path: str) -> bool:
            return confirm(self, "Import", f"Note already exists:\n{note_path}\n\nOverwrite it?")

        try:
            imported = self.kb.repo.import_notes(category, [Path(f) for f in files], overwrite=overwrite)
        except (InvalidName, OSError) as e:
            log.exception("Import failed")
            show_error(self, "Import", f"Import failed:\n{e}")
            return
        self.load_notes(category)
        # the open note was overwritten: reload it instead of saving the editor over it
        if self.current_note in imported:
            self._last_saved_text = self.editor.toPlainText()
            self.open_note_at(self.current_note, self._caret_position())

    def rename_selected_category(self) -> None:
        category = self._selected_category()
        if category is None:
            inform(self, "Rename", "Select the category to rename.")
            return
        new_name = ask_text(self, "Rename category", "New name:", default=category)
        if not new_name or new_name == category:
            return

        self.save_current_note()
        error = None
        try:
            new_category = self.kb.rename_category(category, new_name)
        except FileExistsError:
            show_error(self, "Rename", f"A category named \"{new_name}\" already exists.")
            return
        except (InvalidName, OSError) as e:
            log.exception("Category rename failed: %s", category)
            show_error(self, "Rename", f"Rename failed:\n{e}")
            return
        except PersistenceError as e:
            log.exception("Category renamed but metadata not saved: %s", category)
            new_category, error = e.result, e

        if self.current_note and self.kb.repo.category_of(self.current_note) == category:
            self.current_note = f"{new_category}/{Path(self.current_note).name}"
            self._update_title()
        self.refresh_categories()
        self._select_category(new_category)
        self.refresh_markers_and_links()
        if error is not None:
            show_error(self, "Rename", f"Category renamed, but markers could not be saved:\n{error}")

    def rename_current_note(self) -> None:
        if self.current_note is None:
            inform(self, "Rename", "Open a note first.")
            return
        old_name = Path(self.current_note).stem
        new_name = ask_text(self, "Rename note", "New name:", default=old_name)
        if not new_name or new_name == old_name:
            return

        self.save_current_note()
        error = None
        try:
            new_path = self.kb.rename_note(self.current_note, new_name)
        except FileExistsError:
            show_error(self, "Rename", f"A note named \"{new_name}\" already exists.")
            return
        except (InvalidName, OSError) as e:
            log.exception("Rename failed: %s", self.current_note)
            show_error(self, "Rename", f"Rename failed:\n{e}")
            return
        except PersistenceError as e:
            # the file is already renamed: follow it anyway
            log.exception("Note renamed but metadata not saved: %s", self.current_note)
            new_path, error = e.result, e

        self.current_note = new_path
        self._update_title()
        category = self.kb.repo.category_of(new_path)
        if category:
            self.load_notes(category)
        self.refresh_markers_and_links()
        if error is not None:
            show_error(self, "Rename", f"Note renamed, but markers could not be saved:\n{error}")

    def delete_selected_note(self) -> None:
        item = self.notes.currentItem()
        if item is None:
            inform(self, "Delete", "Select the note to delete.")
            return
        note_path = item.data(ID_ROLE)
        if not confirm(self, "Delete", f"Delete note \"{item.text()}\"?"):
            return

        error = None
        try:
            removed = self.kb.delete_note(note_path)
        except OSError as e:
            log.exception("Delete failed: %s", note_path)
            show_error(self, "Delete", f"Delete failed:\n{e}")
            return
        except PersistenceError as e:
            # the file is already gone: close it so a later save can't bring it back
            log.exception("Note deleted but metadata not saved: %s", note_path)
            removed, error = e.result, e
        log.info("Deleted %s with %d marker(s)", note_path, len(removed))

        if self.current_note == note_path:
            self._close_note()
        category = self.kb.repo.category_of(note_path)
        if category:
            self.load_notes(category)
        self.refresh_markers_and_links()
        if error is not None:
            show_error(self, "Delete", f"Note deleted, but markers could not be saved:\n{error}")

    # ───────────────────────── editor ─────────────────────────

    def _caret_position(self) -> int:
        return self.editor.textCursor().selectionStart()

    def _set_editor_text(self, text: str) -> None:
        with blocked_signals(self.editor):
            self.editor.setPlainText(text)

    def _update_title(self) -> None:
        suffix = f" - {self.current_note}" if self.current_note else ""
        self.setWindowTitle(f"{APP_TITLE}{suffix}")

    def _close_note(self) -> None:
        self.current_note = None
        self._last_saved_text = ""
        self._set_editor_text("")
        self._render_preview("")
        self._update_title()

    def open_note_at(self, note_path: str, position: int) -> bool:
        """Open a note (saving the current one first) and put the caret at `position`."""
        if not self.kb.repo.exists(note_path):
            log.warning("Open skipped, note not found: %s", note_path)
            inform(self, "Open", f"Note not found:\n{note_path}")
            return False

        self.save_current_note()
        try:
            text = self.kb.repo.read_note(note_path)
        except (OSError, UnicodeDecodeError) as e:
            log.exception("Failed to read note: %s", note_path)
            show_error(self, "Open", f"Failed to read note:\n{e}")
            return False

        self.current_note = note_path
        self._last_saved_text = text
        self._set_editor_text(text)

        category = self.kb.repo.category_of(note_path)
        if category and category != self._selected_category():
            self._select_category(category)
        else:
            self._select_note_item(note_path)

        cursor = self.editor.textCursor()
        cursor.setPosition(max(0, min(int(position), len(text))))
        self.editor.setTextCursor(cursor)
        self.editor.ensureCursorVisible()
        self.editor.setFocus()

        self._render_preview(text)
        self._update_title()
        log.info("Opened note: %s pos=%d", note_path, position)
        return True

    def _select_note_item(self, note_path: str) -> None:
        with blocked_signals(self.notes):
            for i in range(self.notes.count()):
                item = self.notes.item(i)
                if item.data(ID_ROLE) == note_path:
                    self.notes.setCurrentItem(item)
                    return

    def save_current_note(self) -> bool:
        if self.current_note is None:
            return False
        text = self.editor.toPlainText()
        if text == self._last_saved_text:
            return False
        try:
            self.kb.repo.write_note(self.current_note, text)
        except OSError as e:
            log.exception("Save failed: %s", self.current_note)
            show_error(self, "Save", f"Failed to save note:\n{self.current_note}\n\n{e}")
            return False
        self._last_saved_text = text
        log.info("Note saved: %s", self.current_note)
        return True

    def _on_text_changed(self) -> None:
        self.preview_timer.setInterval(preview_debounce_ms(len(self.editor.toPlainText())))
        self.preview_timer.start()

    def _on_task_toggled(self, index: int, checked: bool) -> None:
        text, changed = toggle_task(self.editor.toPlainText(), index, checked)
        if not changed:
            return
        cursor = self.editor.textCursor()
        anchor, pos = cursor.anchor(), cursor.position()
        # goes through textChanged, so the preview follows
        self.editor.setPlainText(text)
        cursor = self.editor.textCursor()
        cursor.setPosition(min(anchor, len(text)))
        cursor.setPosition(min(pos, len(text)), QTextCursor.KeepAnchor)
        self.editor.setTextCursor(cursor)

    def _render_preview_from_editor(self) -> None:
        self._render_preview(self.editor.toPlainText())

    def _render_preview(self, text: str, *, force: bool = False) -> None:
        if not force and self._last_preview_source == text:
            return
        self._last_preview_source = text
        base = QUrl()
        if self.current_note:
            note_dir = self.kb.repo.absolute_path(self.current_note).parent
            base = QUrl.fromLocalFile(f"{note_dir}/")
        self.preview.setHtml(self._renderer.render_page(text), base)

    # ───────────────────────── markers / links ─────────────────────────

    @staticmethod
    def _selected_id(listw: QListWidget) -> str | None:
        item = listw.currentItem()
        return item.data(ID_ROLE) if item else None

    def refresh_markers_and_links(self, *, select: Marker | None = None, into: QListWidget | None = None) -> None:
        markers = self.kb.markers
        for listw in (self.source_markers, self.target_markers):
            keep = self._selected_id(listw)
            if listw is into and select is not None:
                keep = select.id
            with blocked_signals(listw):
                listw.clear()
                for marker in markers:
                    item = QListWidgetItem(self.kb.marker_label(marker))
                    item.setData(ID_ROLE, marker.id)
                    item.setToolTip(f"{marker.note_path} @ {marker.position}")
                    listw.addItem(item)
                    if marker.id == keep:
                        listw.setCurrentItem(item)

        keep_link = self._selected_id(self.link_list)
        with blocked_signals(self.link_list):
            self.link_list.clear()
            for link in self.kb.links:
                item = QListWidgetItem(self.kb.link_label(link))
                item.setData(ID_ROLE, link.id)
                self.link_list.addItem(item)
                if link.id == keep_link:
                    self.link_list.setCurrentItem(item)

    def add_source_marker(self) -> None:
        self._add_marker("Source marker name:", self.source_markers)

    def add_target_marker(self) -> None:
        self._add_marker("Target marker name:", self.target_markers)

    def _add_marker(self, prompt: str, listw: QListWidget) -> None:
        if self.current_note is None:
            inform(self, "Marker", "Open a note first.")
            return
        position = self._caret_position()
        name = ask_text(self, "New marker", prompt)
        if not name:
            return
        try:
            marker = self.kb.add_marker(name, self.current_note, position)
        except PersistenceError as e:
            log.exception("Failed to persist new marker")
            show_error(self, "Marker", str(e))
            self.refresh_markers_and_links()
            return
        self.refresh_markers_and_links(select=marker, into=listw)

    def delete_selected_marker(self) -> None:
        marker_id = self._selected_id(self.source_markers) or self._selected_id(self.target_markers)
        marker = self.kb.graph.resolve_marker(marker_id) if marker_id else None
        if marker is None:
            inform(self, "Marker", "Select the marker to delete.")
            return
        links = self.kb.links_of(marker.id)
        question = f"Delete marker \"{marker.name}\"?"
        if links:
            question = f"Delete marker \"{marker.name}\" and its {len(links)} link(s)?"
        if not confirm(self, "Delete marker", question):
            return
        try:
            self.kb.remove_marker(marker.id)
        except PersistenceError as e:
            log.exception("Failed to persist marker removal")
            show_error(self, "Marker", str(e))
        self.refresh_markers_and_links()

    def create_link(self) -> None:
        source_id = self._selected_id(self.source_markers)
        target_id = self._selected_id(self.target_markers)
        if not source_id or not target_id:
            inform(self, "Link", "Select a source marker and a target marker.")
            return
        try:
            self.kb.add_link(source_id, target_id)
        except InvalidReference as e:
            log.warning("Link rejected: %s", e)
            inform(self, "Link", "The selected marker no longer exists. Please reselect.")
        except PersistenceError as e:
            log.exception("Failed to persist new link")
            show_error(self, "Link", str(e))
        self.refresh_markers_and_links()

    def delete_selected_link(self) -> None:
        link_id = self._selected_id(self.link_list)
        if not link_id:
            inform(self, "Link", "Select the link to delete.")
            return
        if not confirm(self, "Delete link", "Delete the selected link?"):
            return
        try:
            self.kb.remove_link(link_id)
        except PersistenceError as e:
            log.exception("Failed to persist link removal")
            show_error(self, "Link", str(e))
        self.refresh_markers_and_links()

    # ───────────────────────── navigation ─────────────────────────

    def jump_selected_link(self) -> None:
        link_id = self._selected_id(self.link_list)
        if not link_id:
            inform(self, "Jump", "Select a link.")
            return
        current = None
        if self.current_note is not None:
            current = NavigationEntry(self.current_note, self._caret_position())
        target = self.kb.jump(link_id, current)
        if target is None:
            inform(self, "Jump", "The link points at an unknown marker.")
            return
        self.open_note_at(target.note_path, target.position)

    def nav_back(self) -> None:
        entry = self.kb.back()
        if entry is None:
            return
        self.open_note_at(entry.note_path, entry.position)

    # ───────────────────────── window events ─────────────────────────

    def closeEvent(self, event):  # type: ignore[override]
        """Persist last edits and window layout on close."""
        self.preview_timer.stop()
        self.save_current_note()
        self._ui_state.save()
        super().closeEvent(event)

    def resizeEvent(self, event):  # type: ignore[override]
        self._ui_state.schedule_save()
        super().resizeEvent(event)

    def moveEvent(self, event):  # type: ignore[override]
        self._ui_state.schedule_save()
        super().moveEvent(event)
