"""
Pure predicates that decide what the pipeline does with each source file.

All functions take a path relative to the source root ("posts/a.md").
"""

import posixpath
from typing import Optional

# Reserved top-level directories: trash, build output, storage, VCS and editor caches.
RESERVED_DIRS = frozenset({
    '.trash',
    '.build',
    '.storage',
    '.thumb',
    '.git',
    '.vscode',
    '.idea',
    'node_modules',
})

TEMPLATE_EXTENSIONS = {
    '.mustache': 'mustache',
    '.ejs': 'ejs',
}

MARKDOWN_EXTENSION = '.md'


def _segments(path: str):
    return [part for part in str(path).replace('\\', '/').split('/') if part and part != '.']


def relative_to(root: str, path: str) -> str:
    """Express a disk-absolute ``path`` relative to ``root``."""
    root = '/' + root.strip('/')
    path = '/' + str(path).strip('/')
    if root == '/':
        return path.lstrip('/')
    if path == root:
        return ''
    if not path.startswith(root + '/'):
        raise ValueError(f"{path} is not under {root}")
    return path[len(root) + 1:]


def is_reserved(path: str) -> bool:
    segments = _segments(path)
    return bool(segments) and segments[0] in RESERVED_DIRS


def is_ignored(path: str) -> bool:
    """True for reserved directories and for any ``_``-prefixed segment."""
    if is_reserved(path):
        return True
    return any(segment.startswith('_') for segment in _segments(path))


def template_kind(path: str) -> Optional[str]:
    """Return ``"mustache"``, ``"ejs"`` or None, judged by extension only."""
    ext = posixpath.splitext(str(path))[1].lower()
    return TEMPLATE_EXTENSIONS.get(ext)


def is_template(path: str) -> bool:
    return template_kind(path) is not None


def is_markdown(path: str) -> bool:
    return posixpath.splitext(str(path))[1].lower() == MARKDOWN_EXTENSION


def is_asset(path: str) -> bool:
    """Everything that is not ignored, a template or markdown is copied through."""
    if is_ignored(path):
        return False
    return not is_template(path) and not is_markdown(path)
