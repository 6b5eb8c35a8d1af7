"""UI creation functions for the fishbone editor."""

from __future__ import annotations

import logging
import os
import sys

from PySide6.QtCore import QUrl
from PySide6.QtQml import QQmlApplicationEngine

from .editor import FishboneEditor
from .logging_config import setup_logging
from .model import FishboneModel
from .project import FishboneProjectManager
from .qml import FISHBONE_QML_PATH, QML_DIR

logger = logging.getLogger(__name__)


def create_fishbone_window(
    editor: FishboneEditor,
    project_manager: FishboneProjectManager | None = None,
) -> QQmlApplicationEngine:
    """Create and return a QQmlApplicationEngine hosting the editor UI."""
    engine = QQmlApplicationEngine()
    if project_manager is None:
        project_manager = FishboneProjectManager(editor.model)
    engine.rootContext().setContextProperty("fishboneModel", editor.model)
    engine.rootContext().setContextProperty("fishboneEditor", editor)
    engine.rootContext().setContextProperty("projectManager", project_manager)
    engine._project_manager = project_manager
    engine.addImportPath(str(QML_DIR))
    engine.load(QUrl.fromLocalFile(str(FISHBONE_QML_PATH)))
    return engine


def main() -> int:
    """Main entry point for the standalone editor."""
    from PySide6.QtWidgets import QApplication

    setup_logging()
    smoke_mode = "--smoke" in sys.argv or os.environ.get("FISHBONE_SMOKE") == "1"
    args = [arg for arg in sys.argv[1:] if not arg.startswith("--")]

    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)

    model = FishboneModel()
    editor = FishboneEditor(model)
    project_manager = FishboneProjectManager(model)

    engine = create_fishbone_window(editor, project_manager)
    if not engine.rootObjects():
        logger.error("Failed to load %s", FISHBONE_QML_PATH)
        return 1

    if smoke_mode:
        return 0

    if args:
        file_path = args[0]
        if file_path.startswith("file://"):
            file_path = file_path[7:]
        if os.path.exists(file_path):
            project_manager.loadProject(file_path)
        else:
            logger.warning("Ignoring missing diagram file: %s", file_path)

    return app.exec()
