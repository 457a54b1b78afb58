"""
Loading and ordering of markdown page sets (book chapters, blog posts).
"""

import logging
import posixpath
import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import List

from .classifier import is_markdown, is_reserved, relative_to
from .disk import Disk
from .indexer import SourceIndexer
from .markdown_processor import MarkdownProcessor
from .models import PageData

NUMERIC_PREFIX_RE = re.compile(r'^(\d+)_')

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DATE_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M', '%Y-%m-%d', '%b %d, %Y', '%B %d, %Y']


class SortOrder(str, Enum):
    NUMERIC_PREFIX = 'numeric-prefix'
    DATE_DESCENDING = 'date-descending'


def parse_date(value) -> datetime:
    """Parse a front matter date into an aware datetime.

    Missing or unparseable values fall back to the Unix epoch so they sort
    after every dated page. Naive values are taken to be UTC.
    """
    parsed = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            for fmt in DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
    if parsed is None:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def numeric_prefix_key(page: PageData):
    """Total order: numbered files first by number, then the rest by name."""
    name = posixpath.basename(page.path)
    match = NUMERIC_PREFIX_RE.match(name)
    if match:
        return (0, int(match.group(1)), name, page.path)
    return (1, 0, name, page.path)


def sort_by_numeric_prefix(pages: List[PageData]) -> List[PageData]:
    return sorted(pages, key=numeric_prefix_key)


def sort_by_date_descending(pages: List[PageData]) -> List[PageData]:
    """Newest first; ties keep their numeric-prefix order."""
    ordered = sort_by_numeric_prefix(pages)
    return sorted(ordered, key=lambda page: parse_date(page.front_matter.get('date')).timestamp(), reverse=True)


SORTERS = {
    SortOrder.NUMERIC_PREFIX: sort_by_numeric_prefix,
    SortOrder.DATE_DESCENDING: sort_by_date_descending,
}


class PageLoader:
    def __init__(self, indexer: SourceIndexer, disk: Disk, processor: MarkdownProcessor):
        self.indexer = indexer
        self.disk = disk
        self.processor = processor
        self.logger = logging.getLogger('Folio.pages')

    def _in_directory(self, rel_path: str, directory: str) -> bool:
        return rel_path.startswith(directory.strip('/') + '/')

    def load_pages(self, directory: str, order: SortOrder = SortOrder.NUMERIC_PREFIX) -> List[PageData]:
        """Parse every markdown file below ``directory`` and return them in ``order``."""
        directory = directory.strip('/')
        root = self.indexer.root
        pages = []
        for node in self.indexer.iterator(lambda n: n.is_file and not is_reserved(relative_to(root, n.path))):
            rel_path = relative_to(root, node.path)
            if not self._in_directory(rel_path, directory) or not is_markdown(rel_path):
                continue
            text = self.disk.read_text(node.path)
            page_path = rel_path[len(directory) + 1:]
            front_matter, body, html = self.processor.parse(text, rel_path)
            pages.append(PageData(
                path=page_path,
                raw_markdown=body,
                front_matter=front_matter,
                rendered_html=html,
                source_node=node,
            ))

        self.logger.debug(f"Loaded {len(pages)} pages from {directory}")
        return SORTERS[SortOrder(order)](pages)
