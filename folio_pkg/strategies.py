"""
Build strategies.

Each strategy is a BuildStrategyRunner subclass with the same three phases:
``prepare`` (load what the strategy needs and fail early), ``copy_assets`` and
``process``. ``run`` drives them in that order and reports the state changes
back to the pipeline through the BuildContext.
"""

import html
import posixpath
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Tuple

from .build_log import BuildLogger
from .classifier import is_asset, is_ignored, is_markdown, is_reserved, relative_to, template_kind
from .disk import Disk
from .errors import EmptyPageSetError
from .indexer import SourceIndexer
from .markdown_processor import MarkdownProcessor
from .models import BuildConfig, BuildResult, BuildStatus, FileNode, PageData, Strategy
from .output import OutputWriter, output_path_for
from .pages import PageLoader, SortOrder
from .renderer import MUSTACHE, TemplateRenderer
from .template_helpers import template_globals

PAGES_DIR = '_pages'
POSTS_DIR = 'posts'
BOOK_TEMPLATE = 'book.mustache'
BLOG_INDEX_TEMPLATE = 'blog-index.mustache'
INDEX_FILE = 'index.html'
PAGE_BREAK = '\n<div class="page-break"></div>\n'


def slugify(text: str) -> str:
    text = str(text).lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "page"


def display_date(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


@dataclass
class BuildContext:
    """Everything a strategy needs for one run."""

    config: BuildConfig
    source_disk: Disk
    output_disk: Disk
    indexer: SourceIndexer
    writer: OutputWriter
    renderer: TemplateRenderer
    processor: MarkdownProcessor
    loader: PageLoader
    build_log: BuildLogger
    checkpoint: Callable[[], Awaitable[None]]
    transition: Callable[[BuildStatus], None]
    build_time: Optional[datetime] = None

    def source_files(self) -> Iterator[Tuple[FileNode, str]]:
        """Indexed files outside reserved directories, with their relative paths."""
        root = self.indexer.root
        for node in self.indexer.iterator(lambda n: n.is_file):
            rel_path = relative_to(root, node.path)
            if not is_reserved(rel_path):
                yield node, rel_path

    def base_context(self, kind: str = MUSTACHE) -> Dict[str, Any]:
        context = template_globals(kind, self.build_time)
        context.update({
            'globalCss': self.processor.global_css(),
            'site': dict(self.config.site),
        })
        return context


class BuildStrategyRunner(ABC):
    strategy: Strategy

    async def run(self, ctx: BuildContext) -> BuildResult:
        ctx.build_log.info(f"Building with {self.strategy.value} strategy...")
        await self.prepare(ctx)
        await ctx.checkpoint()

        ctx.transition(BuildStatus.COPYING_ASSETS)
        await self.copy_assets(ctx)
        await ctx.checkpoint()

        ctx.transition(BuildStatus.STRATEGY_PROCESSING)
        await self.process(ctx)
        return BuildResult(success=True, status=BuildStatus.COMPLETED)

    async def prepare(self, ctx: BuildContext) -> None:
        """Load strategy inputs before anything is written."""

    async def copy_assets(self, ctx: BuildContext) -> None:
        ctx.build_log.info("Copying assets...")
        for node, rel_path in ctx.source_files():
            if not is_asset(rel_path):
                continue
            ctx.writer.copy_asset(ctx.source_disk, node.path, rel_path)
            ctx.build_log.info(f"Copied asset: {rel_path}")
            await ctx.checkpoint()

    @abstractmethod
    async def process(self, ctx: BuildContext) -> None:
        """Write the strategy's pages."""


class FreeformStrategy(BuildStrategyRunner):
    """Every template and markdown file becomes one HTML file."""

    strategy = Strategy.FREEFORM

    async def process(self, ctx):
        ctx.build_log.info("Processing templates and markdown...")
        for node, rel_path in ctx.source_files():
            if is_ignored(rel_path):
                continue
            kind = template_kind(rel_path)
            if kind:
                self.process_template(ctx, node, rel_path, kind)
            elif is_markdown(rel_path):
                self.process_markdown(ctx, node, rel_path)
            else:
                continue
            await ctx.checkpoint()

    def process_template(self, ctx, node, rel_path, kind):
        source = ctx.source_disk.read_text(node.path)
        rendered = ctx.renderer.render(source, ctx.base_context(kind), kind=kind, name=rel_path)
        ctx.writer.write(output_path_for(rel_path), rendered, source=rel_path)
        ctx.build_log.info(f"Template processed: {rel_path}")

    def process_markdown(self, ctx, node, rel_path):
        page = ctx.processor.render_file(rel_path, ctx.source_disk.read_text(node.path))
        ctx.writer.write(page.output_path, page.html, source=rel_path)
        ctx.build_log.info(f"Markdown processed: {rel_path}")


class BookStrategy(BuildStrategyRunner):
    """All pages from ``_pages`` assembled into a single index.html."""

    strategy = Strategy.BOOK

    def __init__(self):
        self.pages: List[PageData] = []

    async def prepare(self, ctx):
        self.pages = ctx.loader.load_pages(PAGES_DIR, SortOrder.NUMERIC_PREFIX)
        if not self.pages:
            raise EmptyPageSetError(PAGES_DIR)
        ctx.build_log.info(f"Loaded {len(self.pages)} pages from {PAGES_DIR}")

    @staticmethod
    def table_of_contents(pages: List[PageData]) -> List[Dict[str, str]]:
        entries = []
        seen: Dict[str, int] = {}
        for page in pages:
            title = page.title or posixpath.splitext(posixpath.basename(page.path))[0]
            slug = slugify(title)
            seen[slug] = seen.get(slug, 0) + 1
            if seen[slug] > 1:
                slug = f"{slug}-{seen[slug]}"
            entries.append({'title': title, 'slug': slug, 'href': f'#{slug}'})
        return entries

    @staticmethod
    def toc_html(entries: List[Dict[str, str]]) -> str:
        items = [f'<li><a href="{entry["href"]}">{html.escape(entry["title"])}</a></li>' for entry in entries]
        return '<ul class="table-of-contents">' + '\n'.join(items) + '</ul>'

    async def process(self, ctx):
        toc = self.table_of_contents(self.pages)
        content = PAGE_BREAK.join(
            f'<section class="book-page" id="{entry["slug"]}">\n{page.rendered_html}</section>'
            for entry, page in zip(toc, self.pages)
        )
        layout = ctx.processor.load_template(BOOK_TEMPLATE)
        context = ctx.base_context()
        context.update({
            'tableOfContents': self.toc_html(toc),
            'toc': toc,
            'content': content,
        })
        book_html = ctx.renderer.render(layout, context, kind=MUSTACHE, name=BOOK_TEMPLATE)
        ctx.writer.write(INDEX_FILE, book_html, source=BOOK_TEMPLATE)
        ctx.build_log.info("Book page generated")


class BlogStrategy(BuildStrategyRunner):
    """An index page listing every post plus one page per post."""

    strategy = Strategy.BLOG

    def __init__(self):
        self.posts: List[PageData] = []

    async def prepare(self, ctx):
        self.posts = ctx.loader.load_pages(POSTS_DIR, SortOrder.DATE_DESCENDING)
        ctx.build_log.info(f"Loaded {len(self.posts)} posts from {POSTS_DIR}")

    @staticmethod
    def post_output_path(post: PageData) -> str:
        return posixpath.join(POSTS_DIR, output_path_for(post.path))

    def summaries(self) -> List[Dict[str, Any]]:
        return [
            {
                'title': post.title or posixpath.splitext(posixpath.basename(post.path))[0],
                'summary': post.front_matter.get('summary'),
                'date': display_date(post.front_matter.get('date')),
                'url': '/' + self.post_output_path(post),
            }
            for post in self.posts
        ]

    async def process(self, ctx):
        layout = ctx.processor.load_template(BLOG_INDEX_TEMPLATE)
        context = ctx.base_context()
        context['posts'] = self.summaries()
        index_html = ctx.renderer.render(layout, context, kind=MUSTACHE, name=BLOG_INDEX_TEMPLATE)
        ctx.writer.write(INDEX_FILE, index_html, source=BLOG_INDEX_TEMPLATE)
        ctx.build_log.info("Blog index generated")

        for post in self.posts:
            await ctx.checkpoint()
            source_path = posixpath.join(POSTS_DIR, post.path)
            post_html = ctx.processor.compose(post.front_matter, post.rendered_html, source_path)
            ctx.writer.write(self.post_output_path(post), post_html, source=source_path)
            ctx.build_log.info(f"Blog post generated: {post.path}")


STRATEGIES = {
    Strategy.FREEFORM: FreeformStrategy,
    Strategy.BOOK: BookStrategy,
    Strategy.BLOG: BlogStrategy,
}
