# main.py
from __future__ import annotations

import logging
import os
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QGridLayout,
    QLabel,
    QGroupBox,
    QLineEdit,
    QTextEdit,
    QPushButton,
    QListWidget,
    QListWidgetItem,
    QFileDialog,
    QScrollArea,
)

from images import ImageReadWorker
from log_manager import LogManager
from models import Entry
from ui_dialogs import EntryDetailDialog

import storage

logger = logging.getLogger(__name__)

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.gif *.bmp *.webp *.svg)"


def _summary_line(e: Entry) -> str:
    first = (e.description.strip().splitlines() or [""])[0]
    if len(first) > 80:
        first = first[:77] + "..."
    return f"{e.name}\n{first}" if first else e.name


# -----------------------------
# Main Window
# -----------------------------

class ExplorationLogWindow(QMainWindow):
    def __init__(self, manager: Optional[LogManager] = None):
        super().__init__()
        self.setWindowTitle("Exploration Log")
        self.setMinimumSize(720, 640)

        self.manager = manager if manager is not None else LogManager(storage.LocalStorage())
        self.manager.subscribe(self.refresh_list)

        self.detail_dialog: EntryDetailDialog | None = None
        self.image_workers: list[ImageReadWorker] = []
        self._image_request = 0
        self._image_generation = 0

        self._build_actions_and_menu()
        self._build_ui()

        self.manager.load()
        self.refresh_list()
        self._sync_form_from_draft()
        self.statusBar().showMessage(f"Ready. {len(self.manager.entries)} planet(s) logged.")

    # ---------------- Menu ----------------

    def _build_actions_and_menu(self) -> None:
        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

        self.act_edit = QAction("Edit Selected", self)
        self.act_edit.setShortcut(QKeySequence("Ctrl+E"))
        self.act_edit.triggered.connect(self.edit_selected)

        self.act_delete = QAction("Delete Selected", self)
        self.act_delete.setShortcut(QKeySequence(Qt.Key.Key_Delete))
        self.act_delete.triggered.connect(self.delete_selected)

        mb = self.menuBar()
        m_file = mb.addMenu("File")
        m_file.addAction(self.act_exit)

        m_edit = mb.addMenu("Edit")
        m_edit.addAction(self.act_edit)
        m_edit.addAction(self.act_delete)

    # ---------------- UI ----------------

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        central_layout = QVBoxLayout(central)
        central_layout.setContentsMargins(0, 0, 0, 0)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        central_layout.addWidget(scroll)

        content = QWidget()
        scroll.setWidget(content)

        root = QVBoxLayout(content)
        root.setContentsMargins(16, 16, 16, 16)
        root.setSpacing(12)

        title = QLabel("Exploration Log")
        title.setStyleSheet("font-size: 22px; font-weight: 700;")
        subtitle = QLabel("Record your cosmic discoveries. Double-click a planet to view it.")
        root.addWidget(title)
        root.addWidget(subtitle)

        # -------- Form --------
        self.form_box = QGroupBox("Add New Planet")
        form = QGridLayout(self.form_box)
        form.setHorizontalSpacing(12)
        form.setVerticalSpacing(8)
        form.setColumnStretch(1, 1)

        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText("Planet name (required)")
        self.name_edit.textChanged.connect(self._on_name_changed)

        self.description_edit = QTextEdit()
        self.description_edit.setAcceptRichText(False)
        self.description_edit.setPlaceholderText("Description (required)")
        self.description_edit.setMinimumHeight(90)
        self.description_edit.setMaximumHeight(140)
        self.description_edit.textChanged.connect(self._on_description_changed)

        image_row = QHBoxLayout()
        self.btn_image = QPushButton("Choose Image...")
        self.btn_image.clicked.connect(self.choose_image)
        image_row.addWidget(self.btn_image)
        self.image_status = QLabel("No image")
        image_row.addWidget(self.image_status, 1)
        self.btn_remove_image = QPushButton("Remove Image")
        self.btn_remove_image.clicked.connect(self.remove_image)
        image_row.addWidget(self.btn_remove_image)

        form.addWidget(QLabel("Name:"), 0, 0)
        form.addWidget(self.name_edit, 0, 1)
        form.addWidget(QLabel("Description:"), 1, 0, Qt.AlignmentFlag.AlignTop)
        form.addWidget(self.description_edit, 1, 1)
        form.addWidget(QLabel("Image (optional):"), 2, 0)
        form.addLayout(image_row, 2, 1)

        form_buttons = QHBoxLayout()
        form_buttons.addStretch(1)
        self.btn_cancel = QPushButton("Cancel Edit")
        self.btn_cancel.clicked.connect(self.cancel_edit)
        form_buttons.addWidget(self.btn_cancel)
        self.btn_submit = QPushButton("Log Planet")
        self.btn_submit.setDefault(True)
        self.btn_submit.clicked.connect(self.submit)
        form_buttons.addWidget(self.btn_submit)
        form.addLayout(form_buttons, 3, 0, 1, 2)

        root.addWidget(self.form_box)

        # -------- Log --------
        log_box = QGroupBox("Exploration Log")
        log_layout = QVBoxLayout(log_box)

        self.empty_label = QLabel("No planets logged yet.")
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        log_layout.addWidget(self.empty_label)

        self.list = QListWidget()
        self.list.setSelectionMode(QListWidget.SelectionMode.SingleSelection)
        self.list.setWordWrap(True)
        self.list.setMinimumHeight(220)
        self.list.itemActivated.connect(self._on_item_activated)
        log_layout.addWidget(self.list, 1)

        actions = QHBoxLayout()
        btn_view = QPushButton("View")
        btn_view.clicked.connect(self.view_selected)
        actions.addWidget(btn_view)

        btn_edit = QPushButton("Edit")
        btn_edit.clicked.connect(self.edit_selected)
        actions.addWidget(btn_edit)

        btn_del = QPushButton("Delete")
        btn_del.clicked.connect(self.delete_selected)
        actions.addWidget(btn_del)
        actions.addStretch(1)
        log_layout.addLayout(actions)

        root.addWidget(log_box, 1)

    # ---------------- Form <-> draft ----------------

    def _on_name_changed(self, text: str) -> None:
        self.manager.set_field("name", text)
        self._update_submit_enabled()

    def _on_description_changed(self) -> None:
        self.manager.set_field("description", self.description_edit.toPlainText())
        self._update_submit_enabled()

    def _update_submit_enabled(self) -> None:
        self.btn_submit.setEnabled(self.manager.draft.is_submittable())

    def _sync_form_from_draft(self) -> None:
        d = self.manager.draft
        # setText feeds back through textChanged with identical values
        self.name_edit.setText(d.name)
        self.description_edit.setPlainText(d.description)
        self._refresh_image_status()

        editing = d.is_editing
        self.form_box.setTitle("Edit Planet" if editing else "Add New Planet")
        self.btn_submit.setText("Save Changes" if editing else "Log Planet")
        self.btn_cancel.setVisible(editing)
        self._update_submit_enabled()

    def _refresh_image_status(self) -> None:
        has_image = bool(self.manager.draft.image)
        if any(w.isRunning() for w in self.image_workers):
            self.image_status.setText("Reading image...")
        else:
            self.image_status.setText("Image attached" if has_image else "No image")
        self.btn_remove_image.setEnabled(has_image)

    # ---------------- Image ----------------

    def choose_image(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Select planet image", "", IMAGE_FILTER)
        if path:
            self.load_image(path)

    def load_image(self, path: str) -> ImageReadWorker:
        self._image_request += 1
        self._image_generation = self.manager.draft_generation
        worker = ImageReadWorker(path, tag=self._image_request, parent=self)
        worker.completed.connect(self._on_image_read)
        worker.failed.connect(self._on_image_failed)
        worker.finished.connect(self._on_image_worker_finished)
        self.image_workers.append(worker)
        worker.start()
        self._refresh_image_status()
        return worker

    def _on_image_read(self, data_uri: str, request: int) -> None:
        # only the most recent pick may land on the draft
        if request != self._image_request:
            logger.debug("Dropping superseded image read %d", request)
            return
        if self.manager.set_image(data_uri, self._image_generation):
            self.statusBar().showMessage("Image attached.")
        self._refresh_image_status()

    def _on_image_failed(self, message: str) -> None:
        logger.warning("Image read failed: %s", message)
        self.statusBar().showMessage(message)

    def _on_image_worker_finished(self) -> None:
        worker = self.sender()
        if worker is None:
            return
        if worker in self.image_workers:
            self.image_workers.remove(worker)
        worker.deleteLater()
        self._refresh_image_status()

    def remove_image(self) -> None:
        self.manager.clear_image()
        self._refresh_image_status()

    # ---------------- Submit / Edit / Delete ----------------

    def submit(self) -> Optional[Entry]:
        if not self.manager.draft.is_submittable():
            self.statusBar().showMessage("Name and description are required.")
            return None

        editing = self.manager.editing
        e = self.manager.submit()
        self._sync_form_from_draft()
        if e is None:
            self.statusBar().showMessage("Planet no longer exists; nothing saved.")
        else:
            self.statusBar().showMessage(f"Saved changes to {e.name}." if editing else f"Logged {e.name}.")
        return e

    def cancel_edit(self) -> None:
        self.manager.cancel_edit()
        self._sync_form_from_draft()

    def _current_entry_id(self) -> Optional[int]:
        item = self.list.currentItem()
        if item is None:
            return None
        entry_id = item.data(Qt.ItemDataRole.UserRole)
        return int(entry_id) if entry_id is not None else None

    def edit_selected(self) -> None:
        entry_id = self._current_entry_id()
        if entry_id is None:
            return
        self.begin_edit(entry_id)

    def begin_edit(self, entry_id: int) -> None:
        if not self.manager.begin_edit(entry_id):
            return
        self._close_detail()
        self._sync_form_from_draft()
        self.name_edit.setFocus()

    def delete_selected(self) -> None:
        entry_id = self._current_entry_id()
        if entry_id is None:
            return
        self.delete_entry(entry_id)

    def delete_entry(self, entry_id: int) -> None:
        e = self.manager.get(entry_id)
        if not self.manager.delete(entry_id):
            return
        if self.detail_dialog is not None and self.manager.selected_id is None:
            self._close_detail()
        self.statusBar().showMessage(f"Deleted {e.name}." if e else "Deleted.")

    # ---------------- Detail ----------------

    def _on_item_activated(self, item: QListWidgetItem) -> None:
        entry_id = item.data(Qt.ItemDataRole.UserRole)
        if entry_id is not None:
            self.show_detail(int(entry_id))

    def view_selected(self) -> None:
        entry_id = self._current_entry_id()
        if entry_id is not None:
            self.show_detail(entry_id)

    def show_detail(self, entry_id: int) -> Optional[EntryDetailDialog]:
        e = self.manager.select(entry_id)
        if e is None:
            return None

        if self.detail_dialog is None:
            self.detail_dialog = EntryDetailDialog(self)
            self.detail_dialog.finished.connect(self._on_detail_closed)
        self.detail_dialog.set_entry(e)
        self.detail_dialog.open()
        return self.detail_dialog

    def _on_detail_closed(self, _result: int) -> None:
        self.manager.deselect()

    def _close_detail(self) -> None:
        if self.detail_dialog is not None and self.detail_dialog.isVisible():
            self.detail_dialog.reject()
        self.manager.deselect()

    # ---------------- List ----------------

    def refresh_list(self) -> None:
        current = self._current_entry_id()
        self.list.clear()

        for e in self.manager.entries:
            item = QListWidgetItem(_summary_line(e))
            item.setData(Qt.ItemDataRole.UserRole, e.id)
            item.setToolTip(e.description)
            self.list.addItem(item)
            if e.id == current:
                self.list.setCurrentItem(item)

        has_entries = self.list.count() > 0
        self.empty_label.setVisible(not has_entries)
        self.list.setVisible(has_entries)

    # ---------------- Close ----------------

    def closeEvent(self, event) -> None:
        for w in list(self.image_workers):
            w.wait()
        event.accept()


# -----------------------------
# Entry point
# -----------------------------

def main() -> None:
    logging.basicConfig(
        level=storage.get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Using store %s", storage.default_store_path())
    os.makedirs(storage.get_data_path(), exist_ok=True)

    app = QApplication([])
    w = ExplorationLogWindow()
    w.show()
    app.exec()


if __name__ == "__main__":
    main()
