"""
Template rendering for Mustache and EJS-style templates.

Mustache goes through chevron. EJS-style templates are handled by a Jinja2
environment configured with EJS delimiters, so ``<%= title %>`` prints a value
and ``<% if posts %> ... <% endif %>`` controls flow using Jinja2 statements.
Neither engine is given partials; layouts receive pre-rendered HTML through
the context instead.
"""

import logging
from typing import Any, Mapping, Optional

import chevron
from jinja2 import Environment, TemplateError, TemplateSyntaxError

from .errors import ConfigError, TemplateRenderError

MUSTACHE = 'mustache'
EJS = 'ejs'


def create_ejs_environment() -> Environment:
    """Jinja2 environment speaking EJS-style delimiters."""
    return Environment(
        block_start_string='<%',
        block_end_string='%>',
        variable_start_string='<%=',
        variable_end_string='%>',
        comment_start_string='<%#',
        comment_end_string='%>',
        autoescape=False,
        keep_trailing_newline=True,
    )


class TemplateRenderer:
    def __init__(self, ejs_env: Optional[Environment] = None):
        self.ejs_env = ejs_env or create_ejs_environment()
        self.logger = logging.getLogger('Folio.renderer')

    def render(self, source: str, context: Mapping[str, Any], kind: str = MUSTACHE, name: str = '<string>') -> str:
        """Render ``source`` against ``context``.

        Raises TemplateRenderError on malformed template syntax.
        """
        if kind == MUSTACHE:
            return self.render_mustache(source, context, name)
        if kind == EJS:
            return self.render_ejs(source, context, name)
        raise ConfigError(f"Unknown template type for {name}: {kind}")

    def render_mustache(self, source: str, context: Mapping[str, Any], name: str = '<string>') -> str:
        try:
            return chevron.render(source, dict(context), partials_path=None)
        except chevron.ChevronError as e:
            raise TemplateRenderError(f"Template error in {name}: {e}") from e

    def render_ejs(self, source: str, context: Mapping[str, Any], name: str = '<string>') -> str:
        try:
            template = self.ejs_env.from_string(source)
            return template.render(dict(context))
        except TemplateSyntaxError as e:
            raise TemplateRenderError(f"Template syntax error in {name} (line {e.lineno}): {e.message}") from e
        except TemplateError as e:
            raise TemplateRenderError(f"Template error in {name}: {e}") from e
