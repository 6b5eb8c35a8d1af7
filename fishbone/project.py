"""Saving and loading fishbone diagrams as JSON files."""

from __future__ import annotations

import json
import logging
import os

from PySide6.QtCore import Property, QObject, QUrl, Signal, Slot

from .errors import FishboneImportError
from .model import FishboneModel

logger = logging.getLogger(__name__)


class FishboneProjectManager(QObject):
    """Manager for saving and loading diagram files.

    A failed load never touches the live model: the payload is validated
    completely first, and the error is reported through ``errorOccurred``.
    """

    saveCompleted = Signal(str)
    loadCompleted = Signal(str)
    errorOccurred = Signal(str)
    currentFilePathChanged = Signal()

    def __init__(self, model: FishboneModel, parent: QObject | None = None):
        super().__init__(parent)
        self._model = model
        self._current_file_path: str = ""

    @Property(str, notify=currentFilePathChanged)
    def currentFilePath(self) -> str:
        return self._current_file_path

    @staticmethod
    def _normalize_file_path(file_path: str) -> str:
        file_path = file_path.strip()
        if file_path.startswith("file:"):
            # Dialog urls are percent-encoded.
            file_path = QUrl(file_path).toLocalFile()
        return file_path

    def _set_current_file_path(self, file_path: str) -> None:
        if self._current_file_path != file_path:
            self._current_file_path = file_path
            self.currentFilePathChanged.emit()

    def _report(self, message: str) -> None:
        logger.warning(message)
        self.errorOccurred.emit(message)

    @Slot(str)
    def saveProject(self, file_path: str) -> None:
        file_path = self._normalize_file_path(file_path)
        if not file_path:
            self._report("No file path specified")
            return
        try:
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(self._model.to_dict(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            self._report(f"Failed to save diagram: {e}")
            return
        self._set_current_file_path(file_path)
        self.saveCompleted.emit(file_path)
        logger.info("Diagram saved to %s", file_path)

    @Slot(str)
    def saveProjectAs(self, file_path: str) -> None:
        """Save the diagram under a new path, which becomes the current file."""
        self.saveProject(file_path)

    @Slot()
    def saveCurrentProject(self) -> None:
        if not self._current_file_path:
            self._report("No current file to save to")
            return
        self.saveProject(self._current_file_path)

    @Slot(str)
    def loadProject(self, file_path: str) -> None:
        file_path = self._normalize_file_path(file_path)
        if not file_path:
            self._report("No file path specified")
            return
        if not os.path.exists(file_path):
            self._report(f"File not found: {file_path}")
            return
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            self._report(f"Could not read JSON: {e}")
            return
        except OSError as e:
            self._report(f"Failed to load diagram: {e}")
            return
        if not self.importPayload(payload):
            return
        self._set_current_file_path(file_path)
        self.loadCompleted.emit(file_path)
        logger.info("Diagram loaded from %s", file_path)

    @Slot("QVariant", result=bool)
    def importPayload(self, payload) -> bool:
        """Replace the diagram with ``payload``; keep the current one if it is invalid."""
        try:
            self._model.from_dict(payload)
        except FishboneImportError as e:
            self._report(f"That JSON does not look like a fishbone model: {e}")
            return False
        return True

    @Slot()
    def newProject(self) -> None:
        self._model.reset()
        self._set_current_file_path("")
