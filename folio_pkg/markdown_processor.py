"""
Markdown processing: front matter, markdown to HTML, and layout composition.
"""

import logging
import posixpath
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

import mistune
import yaml

from .build_log import BuildLogger
from .classifier import template_kind
from .disk import Disk
from .errors import FrontMatterError, MissingLayoutError, StyleFileNotFoundWarning, TemplateNotFoundError
from .output import join_under, output_path_for
from .renderer import MUSTACHE, TemplateRenderer
from .template_helpers import template_globals

LAYOUTS_DIR = '_layouts'
GLOBAL_CSS = 'global.css'

DEFAULT_LAYOUT = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{title}}</title>
  {{#globalCss}}
  <style>
{{{globalCss}}}
  </style>
  {{/globalCss}}
  {{#additionalStyles}}
  <style>
{{{additionalStyles}}}
  </style>
  {{/additionalStyles}}
</head>
<body>
{{{content}}}
{{#additionalScripts}}
<script>
{{{additionalScripts}}}
</script>
{{/additionalScripts}}
</body>
</html>
"""


def split_front_matter(text: str, path: str = '<string>') -> Tuple[Dict[str, Any], str]:
    """Split a ``---`` delimited YAML header from the markdown body."""
    text = text.lstrip('\ufeff')
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != '---':
        return {}, text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() in ('---', '...'):
            end = i
            break
    if end is None:
        return {}, text

    try:
        metadata = yaml.safe_load(''.join(lines[1:end]))
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid YAML front matter in {path}: {e}") from e
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise FrontMatterError(f"Front matter in {path} must be a mapping, got {type(metadata).__name__}")
    return metadata, ''.join(lines[end + 1:])


def create_markdown_parser():
    """Create a Mistune markdown parser with a custom renderer."""
    class CustomRenderer(mistune.HTMLRenderer):
        def __init__(self):
            super().__init__(escape=False)

        def block_code(self, code, info=None):
            escaped_code = mistune.escape(code)
            lang = info.split()[0] if info and info.strip() else None
            if lang:
                return '<pre><code class="language-{}">{}</code></pre>\n'.format(mistune.escape(lang), escaped_code)
            return '<pre><code>{}</code></pre>\n'.format(escaped_code)

    return mistune.create_markdown(
        renderer=CustomRenderer(),
        plugins=['table', 'task_lists', 'strikethrough']
    )


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


@dataclass(frozen=True)
class RenderedPage:
    html: str
    output_path: str


class MarkdownProcessor:
    """Turns markdown source files into finished HTML pages.

    When a page names no layout the built-in DEFAULT_LAYOUT shell is used,
    unless ``require_layout`` is set, in which case MissingLayoutError is
    raised for every strategy alike.
    """

    def __init__(self, disk: Disk, source_root: str, renderer: TemplateRenderer, build_log: BuildLogger,
                 require_layout: bool = False, site: Optional[Dict[str, Any]] = None,
                 build_time: Optional[datetime] = None):
        self.disk = disk
        self.source_root = source_root
        self.renderer = renderer
        self.build_log = build_log
        self.require_layout = require_layout
        self.site = dict(site or {})
        self.build_time = build_time
        self.markdown_parser = create_markdown_parser()
        self.logger = logging.getLogger('Folio.markdown')
        self._global_css: Optional[str] = None

    def markdown_filter(self, text: str) -> str:
        """Convert markdown text to HTML."""
        return self.markdown_parser(text)

    def parse(self, text: str, path: str = '<string>') -> Tuple[Dict[str, Any], str, str]:
        """Return ``(front_matter, markdown_body, html_body)``."""
        front_matter, body = split_front_matter(text, path)
        return front_matter, body, self.markdown_filter(body)

    def source_path(self, rel_path: str) -> str:
        return join_under(self.source_root, rel_path.lstrip('/'))

    def load_template(self, rel_path: str) -> str:
        """Read a template from the source tree or raise TemplateNotFoundError."""
        path = self.source_path(rel_path)
        try:
            return self.disk.read_text(path)
        except FileNotFoundError:
            raise TemplateNotFoundError(rel_path) from None

    def resolve_layout(self, front_matter: Dict[str, Any], page_path: str) -> Tuple[str, str, str]:
        """Return ``(layout_source, kind, layout_path)`` for a page."""
        layout = front_matter.get('layout')
        if not layout:
            if self.require_layout:
                raise MissingLayoutError(page_path)
            return DEFAULT_LAYOUT, MUSTACHE, '<default layout>'

        layout = str(layout)
        if template_kind(layout):
            candidates = [posixpath.join(LAYOUTS_DIR, layout)]
        else:
            candidates = [posixpath.join(LAYOUTS_DIR, layout + ext) for ext in ('.mustache', '.ejs')]

        for candidate in candidates:
            if self.disk.exists(self.source_path(candidate)):
                return self.load_template(candidate), template_kind(candidate), candidate
        raise TemplateNotFoundError(candidates[0])

    def global_css(self) -> str:
        """Contents of ``global.css`` at the source root, or an empty string."""
        if self._global_css is None:
            try:
                self._global_css = self.disk.read_text(self.source_path(GLOBAL_CSS))
            except FileNotFoundError:
                self.logger.debug("No global.css found")
                self._global_css = ''
        return self._global_css

    def read_optional_files(self, paths: Iterable[str]) -> str:
        """Concatenate the named files, logging a warning for each missing one."""
        contents = []
        for rel_path in paths:
            try:
                contents.append(self.disk.read_text(self.source_path(rel_path)))
            except FileNotFoundError:
                self.build_log.warning(str(StyleFileNotFoundWarning(rel_path)))
        return '\n'.join(contents)

    def compose(self, front_matter: Dict[str, Any], html: str, page_path: str) -> str:
        """Wrap rendered page HTML in its layout."""
        layout, kind, layout_path = self.resolve_layout(front_matter, page_path)
        context = template_globals(kind, self.build_time)
        context.update({
            'content': html,
            'globalCss': self.global_css(),
            'additionalStyles': self.read_optional_files(_as_list(front_matter.get('styles'))),
            'additionalScripts': self.read_optional_files(_as_list(front_matter.get('scripts'))),
            'site': self.site,
        })
        context.update(front_matter)
        context['title'] = front_matter.get('title') or posixpath.splitext(posixpath.basename(page_path))[0]
        return self.renderer.render(layout, context, kind=kind, name=layout_path)

    def render_file(self, rel_path: str, text: str) -> RenderedPage:
        front_matter, _, html = self.parse(text, rel_path)
        return RenderedPage(html=self.compose(front_matter, html, rel_path), output_path=output_path_for(rel_path))
