"""
=============================================================================
UPLOAD MIME TYPES
=============================================================================

Guesses the Content-Type of a multipart file part from its filename.

When a form field is appended with a filename, the part header carries
its own Content-Type line:

    --------------------------123456789012345678901234
    Content-Disposition: form-data; name="avatar"; filename="me.png"
    Content-Type: image/png

    <bytes>

Receivers use that line to decide how to store or render the upload, so
an unknown extension falls back to application/octet-stream ("opaque
bytes") rather than guessing a text type.

=============================================================================
"""

from pathlib import PurePath
from typing import Optional


UPLOAD_MIME_TYPES = {
    # Text and structured data
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".html": "text/html",
    ".htm": "text/html",
    ".md": "text/markdown",
    ".json": "application/json",
    ".xml": "application/xml",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",

    # Documents
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",

    # Archives
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".tar": "application/x-tar",

    # Media
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(filename: str, default: Optional[str] = None) -> str:
    """
    Get the MIME type for an uploaded file based on its extension.

    Examples:
        >>> get_mime_type("report.PDF")
        'application/pdf'

        >>> get_mime_type("blob.bin")
        'application/octet-stream'
    """
    extension = PurePath(filename).suffix.lower()
    return UPLOAD_MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)
