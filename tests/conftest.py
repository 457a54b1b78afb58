"""Test configuration and fixtures for Folio tests."""

import os
import shutil
import sys
import tempfile

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from folio_pkg.build_log import BuildLogger
from folio_pkg.disk import MemoryDisk
from folio_pkg.markdown_processor import MarkdownProcessor
from folio_pkg.renderer import TemplateRenderer

PNG_BYTES = b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde'


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def freeform_files():
    """Source tree for the freeform strategy."""
    return {
        '/index.mustache': '<h1>{{site.title}}</h1>',
        '/page.ejs': '<p><%= site.title %></p>',
        '/about.md': '---\ntitle: About Us\nlayout: default\n---\n\n# About\n\nHello **world**.\n',
        '/notes/plain.md': '# Plain\n\nNo front matter here.\n',
        '/_layouts/default.mustache': '<html><title>{{title}}</title><body>{{{content}}}</body></html>',
        '/_drafts/note.md': '# Draft\n',
        '/global.css': 'body { color: #333; }\n',
        '/css/site.css': 'h1 {  margin:  0;  }\n',
        '/assets/logo.png': PNG_BYTES,
        '/.git/config': '[core]\n',
        '/node_modules/pkg/index.js': 'module.exports = 1;\n',
    }


@pytest.fixture
def freeform_disk(freeform_files):
    return MemoryDisk(freeform_files, guid='freeform-disk')


@pytest.fixture
def book_disk():
    """Source tree for the book strategy with chapters out of lexical order."""
    return MemoryDisk({
        '/book.mustache': '<nav>{{{tableOfContents}}}</nav>\n<main>{{{content}}}</main>',
        '/global.css': 'body { margin: 0; }\n',
        '/_pages/10_c.md': '---\ntitle: Chapter C\n---\n\nThird.\n',
        '/_pages/1_a.md': '---\ntitle: Chapter A\n---\n\nFirst.\n',
        '/_pages/2_b.md': '---\ntitle: Chapter B\n---\n\nSecond.\n',
        '/images/cover.png': PNG_BYTES,
    }, guid='book-disk')


@pytest.fixture
def blog_disk():
    """Source tree for the blog strategy with one undated post."""
    return MemoryDisk({
        '/blog-index.mustache': '{{#posts}}<a href="{{url}}">{{title}}</a>|{{date}}\n{{/posts}}',
        '/posts/old.md': '---\ntitle: Old Post\ndate: 2023-01-01\nsummary: Older\n---\n\nOld body.\n',
        '/posts/undated.md': '---\ntitle: Undated Post\n---\n\nNo date.\n',
        '/posts/new.md': '---\ntitle: New Post\ndate: 2024-06-01\n---\n\nNew body.\n',
        '/global.css': 'body { color: black; }\n',
    }, guid='blog-disk')


@pytest.fixture
def build_log():
    return BuildLogger()


@pytest.fixture
def make_processor(build_log):
    """Factory for a MarkdownProcessor over a MemoryDisk."""
    def _make(files=None, **kwargs):
        disk = MemoryDisk(files or {})
        return MarkdownProcessor(disk, '/', TemplateRenderer(), build_log, **kwargs)
    return _make
