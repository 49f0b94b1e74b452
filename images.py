# images.py
from __future__ import annotations

import base64
import binascii
import mimetypes

from PyQt6.QtCore import QObject, QThread, pyqtSignal


class ImageReadError(Exception):
    pass


def encode_image_file(path: str) -> str:
    """Read an image file and return it as a base64 data URI."""
    mime, _ = mimetypes.guess_type(path)
    if not mime or not mime.startswith("image/"):
        raise ImageReadError(f"Not an image file: {path}")

    try:
        with open(path, "rb") as f:
            payload = f.read()
    except OSError as ex:
        raise ImageReadError(f"Could not read {path}: {ex}") from ex

    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    if not uri.startswith("data:") or "," not in uri:
        raise ValueError("not a data URI")

    header, _, body = uri[5:].partition(",")
    parts = header.split(";")
    mime = parts[0] or "text/plain"
    if "base64" not in parts[1:]:
        raise ValueError("only base64 data URIs are supported")

    try:
        return mime, base64.b64decode(body, validate=True)
    except binascii.Error as ex:
        raise ValueError(f"bad base64 payload: {ex}") from ex


class ImageReadWorker(QThread):
    """
    Encode one image file off the GUI thread.

    ``tag`` is handed back with the result so the receiver can tell which
    request it answers.
    """

    completed = pyqtSignal(str, int)
    failed = pyqtSignal(str)

    def __init__(self, path: str, tag: int = 0, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.path = path
        self.tag = tag

    def run(self) -> None:
        try:
            data_uri = encode_image_file(self.path)
        except ImageReadError as exc:
            self.failed.emit(str(exc))
        else:
            self.completed.emit(data_uri, self.tag)
