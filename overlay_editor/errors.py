"""Exception types raised by the overlay editor core."""


class OverlayEditorError(Exception):
    """Base class for all editor errors."""


class LoadError(OverlayEditorError):
    """Input could not be decoded or parsed. Not retriable."""


class AnnotationError(OverlayEditorError):
    """An overlay could not be embedded (bad signature data, etc.)."""


class ExportError(OverlayEditorError):
    """The output document could not be produced or serialized."""
