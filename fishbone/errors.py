"""Exceptions raised by the fishbone package."""


class FishboneError(Exception):
    """Base class for fishbone errors."""


class FishboneImportError(FishboneError):
    """A persisted diagram payload is structurally invalid."""


class DragError(FishboneError):
    """A drag transition was requested from the wrong state."""
