"""Turn a composed document into a downloadable artifact."""

import logging
import os

from overlay_editor.compositor import compose_pdf, flatten_scene
from overlay_editor.errors import ExportError

logger = logging.getLogger(__name__)

PNG_MIME_TYPE = "image/png"
PDF_MIME_TYPE = "application/pdf"


def processed_filename(original_name):
    return f"processed-{original_name or 'untitled'}"


class ExportArtifact:
    """Finished output: a blob plus the name and type it is delivered under."""

    def __init__(self, filename, mime_type, data):
        self.filename = filename
        self.mime_type = mime_type
        self.data = data

    def __repr__(self):
        return f"<ExportArtifact {self.filename} {self.mime_type} {len(self.data)} bytes>"

    def save(self, directory=None, path=None):
        """Write the blob to *path*, or to ``directory/filename``."""
        target = path or os.path.join(directory or os.getcwd(), self.filename)
        try:
            with open(target, "wb") as f:
                f.write(self.data)
        except OSError as e:
            raise ExportError(f"Cannot write {target}: {e}") from e
        logger.info("Saved %s", target)
        return target


def export_document(document, scene, watermark=None, signature_png=None):
    """Compose *document* with its overlays into an :class:`ExportArtifact`.

    Images are flattened from the live scene; PDFs are re-rendered from the
    original bytes, every page.
    """
    name = processed_filename(document.name)
    if document.is_pdf:
        data = compose_pdf(document.data, watermark, signature_png, scene)
        return ExportArtifact(name, PDF_MIME_TYPE, data)
    return ExportArtifact(name, PNG_MIME_TYPE, flatten_scene(scene))
