"""Location of the QML UI for the fishbone editor."""

from __future__ import annotations

from pathlib import Path

QML_DIR = Path(__file__).with_name("qml_ui")
FISHBONE_QML_PATH = QML_DIR / "FishboneWindow.qml"


__all__ = [
    "FISHBONE_QML_PATH",
    "QML_DIR",
]
