# ui_dialogs.py
from __future__ import annotations

import logging

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QPixmap
from PyQt6.QtWidgets import (
    QDialog,
    QVBoxLayout,
    QLabel,
    QTextEdit,
    QDialogButtonBox,
    QSizePolicy,
)

from images import decode_data_uri
from models import Entry

logger = logging.getLogger(__name__)

IMAGE_MAX_WIDTH = 480


class EntryDetailDialog(QDialog):
    """
    Read-only detail card for one planet.
    Shows the name, the image when there is one, and the full description.
    """

    def __init__(self, parent=None, entry: Entry | None = None):
        super().__init__(parent)
        self.setWindowTitle("Planet Details")
        self.setMinimumSize(420, 320)
        self.resize(560, 560)
        self.setSizeGripEnabled(True)

        root = QVBoxLayout(self)
        root.setContentsMargins(16, 16, 16, 16)
        root.setSpacing(12)

        self.name_label = QLabel()
        self.name_label.setStyleSheet("font-size: 20px; font-weight: 700;")
        self.name_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.name_label.setWordWrap(True)
        root.addWidget(self.name_label)

        self.image_label = QLabel()
        self.image_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.image_label.hide()
        root.addWidget(self.image_label)

        self.description_view = QTextEdit()
        self.description_view.setReadOnly(True)
        self.description_view.setAcceptRichText(False)
        self.description_view.setSizePolicy(
            QSizePolicy.Policy.Expanding,
            QSizePolicy.Policy.Expanding,
        )
        root.addWidget(self.description_view, stretch=1)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        buttons.rejected.connect(self.reject)
        root.addWidget(buttons)

        if entry is not None:
            self.set_entry(entry)

    def set_entry(self, entry: Entry) -> None:
        self.entry_id = entry.id
        self.name_label.setText(entry.name)
        self.description_view.setPlainText(entry.description)
        self._show_image(entry.image)

    def _show_image(self, data_uri: str) -> None:
        self.image_label.clear()
        self.image_label.hide()
        if not data_uri:
            return

        try:
            _, payload = decode_data_uri(data_uri)
        except ValueError as ex:
            logger.warning("Entry %s has an unreadable image: %s", self.entry_id, ex)
            return

        pix = QPixmap()
        if not pix.loadFromData(payload):
            logger.warning("Entry %s image could not be decoded", self.entry_id)
            return

        if pix.width() > IMAGE_MAX_WIDTH:
            pix = pix.scaledToWidth(IMAGE_MAX_WIDTH, Qt.TransformationMode.SmoothTransformation)
        self.image_label.setPixmap(pix)
        self.image_label.show()

    def has_image(self) -> bool:
        return not self.image_label.isHidden()
