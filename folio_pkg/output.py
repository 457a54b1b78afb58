"""
Output path mapping and writing.
"""

import logging
import posixpath
from typing import Dict, Optional

import csscompressor
import rjsmin

from .disk import Content, Disk, normalize_disk_path
from .errors import OutputCollisionError, PathTraversalError

HTML_EXTENSIONS = ('.mustache', '.ejs', '.md')


def output_path_for(rel_path: str) -> str:
    """Map a source-relative path to its output-relative path.

    Templates and markdown become ``.html``; everything else is unchanged.
    Only the final extension is rewritten.
    """
    base, ext = posixpath.splitext(rel_path)
    if ext.lower() in HTML_EXTENSIONS:
        return base + '.html'
    return rel_path


def join_under(root: str, rel_path: str) -> str:
    """Join ``rel_path`` below ``root``, refusing anything that escapes it."""
    rel_path = str(rel_path).replace('\\', '/')
    if rel_path.startswith('/'):
        raise PathTraversalError(f"Absolute path not allowed here: {rel_path}")
    normalized = posixpath.normpath(rel_path)
    if normalized == '..' or normalized.startswith('../'):
        raise PathTraversalError(f"Path traversal attempt detected: {rel_path}")
    root = normalize_disk_path(root)
    if normalized == '.':
        return root
    return posixpath.join(root, normalized)


def minify(rel_path: str, content: bytes) -> bytes:
    """Minify CSS and JS assets; other content is returned untouched."""
    ext = posixpath.splitext(rel_path)[1].lower()
    if ext == '.css' and not rel_path.endswith('.min.css'):
        return csscompressor.compress(content.decode('utf-8')).encode('utf-8')
    if ext == '.js' and not rel_path.endswith('.min.js'):
        return rjsmin.jsmin(content.decode('utf-8')).encode('utf-8')
    return content


class OutputWriter:
    """Persists build output below ``output_root`` on a Disk.

    Every output path is claimed by at most one source per run so the mapping
    from sources to outputs stays injective.
    """

    def __init__(self, disk: Disk, output_root: str, minify_assets: bool = False):
        self.disk = disk
        self.output_root = normalize_disk_path(output_root)
        self.minify_assets = minify_assets
        self.written: Dict[str, str] = {}
        self.logger = logging.getLogger('Folio.output')

    def resolve(self, rel_path: str) -> str:
        return join_under(self.output_root, rel_path)

    def ensure_root(self) -> None:
        self.disk.mkdir_recursive(self.output_root)

    def _claim(self, rel_path: str, source: Optional[str]) -> str:
        target = self.resolve(rel_path)
        if target == self.output_root:
            raise PathTraversalError(f"Output path resolves to the output root itself: {rel_path}")
        owner = source or rel_path
        previous = self.written.get(target)
        if previous is not None and previous != owner:
            raise OutputCollisionError(f"Output path collision: {previous} and {owner} both map to {rel_path}")
        self.written[target] = owner
        return target

    def write(self, rel_path: str, content: Content, source: Optional[str] = None) -> str:
        """Write ``content`` to ``rel_path`` below the output root."""
        target = self._claim(rel_path, source)
        self.disk.mkdir_recursive(posixpath.dirname(target))
        self.disk.write_file(target, content)
        self.logger.debug(f"Wrote {target}")
        return target

    def copy_asset(self, source_disk: Disk, source_path: str, rel_path: str) -> str:
        """Copy an asset through unchanged (minified when enabled)."""
        content = source_disk.read_file(source_path)
        if self.minify_assets:
            content = minify(rel_path, content)
        return self.write(output_path_for(rel_path), content, source=rel_path)
