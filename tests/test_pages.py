"""Tests for page loading and ordering."""

from datetime import date, datetime, timedelta, timezone

import pytest

from folio_pkg.build_log import BuildLogger
from folio_pkg.disk import MemoryDisk
from folio_pkg.indexer import SourceIndexer
from folio_pkg.markdown_processor import MarkdownProcessor
from folio_pkg.models import FileNode, PageData
from folio_pkg.pages import (
    EPOCH,
    PageLoader,
    SortOrder,
    parse_date,
    sort_by_date_descending,
    sort_by_numeric_prefix,
)
from folio_pkg.renderer import TemplateRenderer


def make_page(path, **front_matter):
    return PageData(
        path=path,
        raw_markdown='',
        front_matter=front_matter,
        rendered_html='',
        source_node=FileNode('/' + path),
    )


class TestParseDate:
    """Test cases for front matter date parsing."""

    def test_iso_string(self):
        """Test a plain ISO date string."""
        assert parse_date('2024-06-01') == datetime(2024, 6, 1, tzinfo=timezone.utc)

    def test_date_object(self):
        """Test a date as produced by YAML."""
        assert parse_date(date(2023, 1, 1)) == datetime(2023, 1, 1, tzinfo=timezone.utc)

    def test_aware_datetime_kept(self):
        """Test that an explicit offset is preserved."""
        tz = timezone(timedelta(hours=2))
        value = datetime(2024, 1, 1, 12, 0, tzinfo=tz)
        assert parse_date(value) == value

    def test_long_form(self):
        """Test a human-readable month name."""
        assert parse_date('June 1, 2024') == datetime(2024, 6, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize('value', [None, '', 'not a date', 42])
    def test_fallback_to_epoch(self, value):
        """Test that missing or unparseable dates become the epoch."""
        assert parse_date(value) == EPOCH


class TestSorting:
    """Test cases for page ordering."""

    def test_numeric_prefix_order(self):
        """Test that numeric prefixes sort numerically, not lexically."""
        pages = [make_page('10_c.md'), make_page('2_b.md'), make_page('1_a.md')]
        assert [p.path for p in sort_by_numeric_prefix(pages)] == ['1_a.md', '2_b.md', '10_c.md']

    def test_unprefixed_pages_last_by_name(self):
        """Test that unnumbered pages follow the numbered ones."""
        pages = [make_page('zeta.md'), make_page('alpha.md'), make_page('3_x.md')]
        assert [p.path for p in sort_by_numeric_prefix(pages)] == ['3_x.md', 'alpha.md', 'zeta.md']

    def test_date_descending(self):
        """Test newest first with undated pages last."""
        pages = [
            make_page('missing.md'),
            make_page('old.md', date=date(2023, 1, 1)),
            make_page('new.md', date='2024-06-01'),
        ]
        assert [p.path for p in sort_by_date_descending(pages)] == ['new.md', 'old.md', 'missing.md']

    def test_date_ties_keep_prefix_order(self):
        """Test that equal dates fall back to the numeric prefix order."""
        pages = [make_page('2_b.md', date='2024-01-01'), make_page('1_a.md', date='2024-01-01')]
        assert [p.path for p in sort_by_date_descending(pages)] == ['1_a.md', '2_b.md']


class TestPageLoader:
    """Test cases for PageLoader."""

    @pytest.mark.asyncio
    async def test_loads_sorted_pages(self, book_disk):
        """Test that only markdown under the directory is loaded, in order."""
        indexer = SourceIndexer(book_disk)
        processor = MarkdownProcessor(book_disk, '/', TemplateRenderer(), BuildLogger())
        loader = PageLoader(indexer, book_disk, processor)
        await indexer.index()

        pages = loader.load_pages('_pages')

        assert [p.path for p in pages] == ['1_a.md', '2_b.md', '10_c.md']
        assert pages[0].title == 'Chapter A'
        assert pages[0].rendered_html.strip() == '<p>First.</p>'
        assert pages[0].source_node.path == '/_pages/1_a.md'

    @pytest.mark.asyncio
    async def test_missing_directory_is_empty(self, blog_disk):
        """Test that a directory with no markdown yields no pages."""
        indexer = SourceIndexer(blog_disk)
        processor = MarkdownProcessor(blog_disk, '/', TemplateRenderer(), BuildLogger())
        await indexer.index()
        assert PageLoader(indexer, blog_disk, processor).load_pages('_pages') == []

    @pytest.mark.asyncio
    async def test_date_order_and_subdirectories(self):
        """Test blog ordering, nested posts and non-markdown files."""
        disk = MemoryDisk({
            '/posts/a.md': '---\ndate: 2023-01-01\n---\n',
            '/posts/2024/b.md': '---\ndate: 2024-06-01\n---\n',
            '/posts/c.md': 'no date',
            '/posts/image.png': b'\x89PNG',
            '/postscript.md': 'not a post',
        })
        indexer = SourceIndexer(disk)
        processor = MarkdownProcessor(disk, '/', TemplateRenderer(), BuildLogger())
        await indexer.index()

        pages = PageLoader(indexer, disk, processor).load_pages('posts', SortOrder.DATE_DESCENDING)

        assert [p.path for p in pages] == ['2024/b.md', 'a.md', 'c.md']
