"""
=============================================================================
PATH RESOLUTION
=============================================================================

Maps a request target onto a file below the sandbox root.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    TARGET → FILE                                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   root = /srv/public                                                │
    │                                                                      │
    │   /                  → /srv/public/index.html        (.html)        │
    │   /docs              → /srv/public/docs/index.html   (.html)        │
    │   /docs/             → /srv/public/docs/index.html   (.html)        │
    │   /css/site.css      → /srv/public/css/site.css      (.css)         │
    │   /v1.2/readme       → /srv/public/v1.2/readme/index.html           │
    │   /../etc/passwd     → PathTraversal                                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

IMPLICIT INDEX RESOLUTION:
──────────────────────────
A target whose last segment has no dot is treated as a directory and
served from <target>/index.html. Only the LAST segment counts, so dots in
directory names do not make a target look like a file.

=============================================================================
SANDBOX CONTAINMENT
=============================================================================

The target is joined onto the root and canonicalised with Path.resolve(),
which collapses ".." segments and follows symlinks. The result must still
be inside the resolved root:

    (root / "../etc/passwd").resolve()   →  /srv/etc/passwd
    .relative_to(root)                   →  ValueError  →  PathTraversal

Symlinks inside the root that point outside it are refused the same way.

The target is used literally: no percent-decoding and no query string
stripping. "/a.png?v=2" has the extension ".png?v=2".

=============================================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .errors import MalformedRequest, PathTraversal, ResourceNotFound
from .mime_types import DIRECTORY_EXTENSION, get_mime_type, is_supported


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTarget:
    """
    Where a request target lives on disk and how to label it.

    Attributes:
        filesystem_path: Canonical path, always inside the sandbox root.
        extension: Effective extension (".html" for directory requests).
        content_type: MIME type, or None if the extension is not served.
    """

    filesystem_path: Path
    extension: str
    content_type: Optional[str]

    @property
    def is_supported(self) -> bool:
        return self.content_type is not None


def extension_of(target: str) -> Optional[str]:
    """
    Extract the extension of the last path segment, dot included.

    Examples:
        >>> extension_of("/img/logo.png")
        '.png'
        >>> extension_of("/img/") is None
        True
        >>> extension_of("/archive.tar.gz")
        '.gz'
    """
    segment = target.rsplit("/", 1)[-1]
    dot = segment.rfind(".")
    if dot == -1:
        return None
    return segment[dot:]


class PathResolver:
    """
    Resolves request targets against a fixed sandbox root.

    Usage:
        resolver = PathResolver("./public")
        resolved = resolver.resolve("/css/site.css")
        resolved.filesystem_path   # PosixPath('/abs/public/css/site.css')
        resolved.content_type      # 'text/css'
    """

    def __init__(self, root_dir: Union[str, Path], index_file: str = "index.html"):
        """
        Args:
            root_dir: Sandbox root. Resolved to an absolute path once here
                      so every containment check compares canonical paths.
            index_file: File served for directory-style targets.
        """
        self.root_dir = Path(root_dir).resolve()
        self.index_file = index_file

        if not self.root_dir.is_dir():
            # Not fatal: every request will simply end up as a 404
            logger.warning(f"Document root does not exist: {self.root_dir}")

    def resolve(self, target: str) -> ResolvedTarget:
        """
        Resolve a target to a file path and content type.

        Args:
            target: Request target, starting with "/".

        Returns:
            ResolvedTarget. content_type is None when the extension is not
            in the MIME table; the caller decides how to refuse it.

        Raises:
            MalformedRequest: Target does not start with "/" or holds a NUL.
            PathTraversal: Target escapes the sandbox root.
            ResourceNotFound: The path cannot be canonicalised.
        """
        if not target.startswith("/"):
            raise MalformedRequest(f"Target must start with '/': {target!r}")
        if "\x00" in target:
            raise MalformedRequest("Target contains a NUL byte")

        extension = extension_of(target)
        relative = target.lstrip("/")

        if extension is None:
            candidate = self.root_dir / relative.rstrip("/") / self.index_file
            extension = DIRECTORY_EXTENSION
        else:
            candidate = self.root_dir / relative

        try:
            full_path = candidate.resolve()
        except (OSError, RuntimeError) as e:
            # Symlink loops land here
            raise ResourceNotFound(f"Cannot resolve {target}: {e}") from None

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {target}")
            raise PathTraversal(f"Target escapes document root: {target}") from None

        return ResolvedTarget(
            filesystem_path=full_path,
            extension=extension,
            content_type=get_mime_type(extension) if is_supported(extension) else None,
        )
