from __future__ import annotations

import os
import posixpath
from pathlib import Path

from flask import Response, send_file
from werkzeug.security import safe_join

from .errors import NotFoundError

DEFAULT_DOCUMENT = "index.html"
FALLBACK_MIMETYPE = "application/octet-stream"

MIMETYPES = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".txt": "text/plain",
}


def mimetype_for(filename: str) -> str:
    return MIMETYPES.get(posixpath.splitext(filename)[1].lower(), FALLBACK_MIMETYPE)


def resolve_public_path(public_dir: Path | str, request_path: str) -> Path:
    """Map a decoded request path to a file below ``public_dir``.

    Parent-directory segments are collapsed against the root before joining,
    so ``/../secret`` becomes ``secret``. Raises :class:`NotFoundError` when
    the target is missing, is not a regular file, or still escapes the root.
    """

    requested = request_path.replace("\\", "/")
    if requested in ("", "/"):
        requested = "/" + DEFAULT_DOCUMENT

    relative = posixpath.normpath("/" + requested.lstrip("/")).lstrip("/")
    if not relative or relative == ".":
        relative = DEFAULT_DOCUMENT

    joined = safe_join(os.fspath(Path(public_dir).resolve()), relative)
    if joined is None or not os.path.isfile(joined):
        raise NotFoundError(request_path)
    return Path(joined)


def serve_public_file(public_dir: Path | str, request_path: str) -> Response:
    path = resolve_public_path(public_dir, request_path)
    response = send_file(path, mimetype=mimetype_for(path.name), conditional=True)
    if path.suffix.lower() == ".json":
        response.headers["Cache-Control"] = "no-store"
    return response


__all__ = [
    "DEFAULT_DOCUMENT",
    "FALLBACK_MIMETYPE",
    "MIMETYPES",
    "mimetype_for",
    "resolve_public_path",
    "serve_public_file",
]
