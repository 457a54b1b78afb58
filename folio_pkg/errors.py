"""
Exception types raised by the Folio build pipeline.

Every fatal condition derives from BuildError so the pipeline can turn it into
a single "Build failed: <message>" log line and a terminal BuildResult.
"""


class BuildError(Exception):
    """Base class for all fatal build errors."""


class ConfigError(BuildError):
    """Unknown strategy or otherwise unusable build configuration."""


class MissingLayoutError(BuildError):
    """A markdown file declares no layout while layouts are required."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Missing layout in front matter: {path}")


class TemplateNotFoundError(BuildError):
    """A referenced layout or template file does not exist."""

    def __init__(self, template_path):
        self.template_path = template_path
        super().__init__(f"Template not found: {template_path}")


class TemplateRenderError(BuildError):
    """Malformed template syntax."""


class FrontMatterError(BuildError):
    """Front matter block could not be parsed."""


class EmptyPageSetError(BuildError):
    """The book strategy found no pages to assemble."""

    def __init__(self, directory):
        self.directory = directory
        super().__init__(f"No pages found in {directory} directory for book strategy")


class BuildCancelledError(BuildError):
    """An abort signal was observed at a checkpoint."""

    def __init__(self, message="Build cancelled"):
        super().__init__(message)


class PathTraversalError(BuildError):
    """A path would escape its root directory."""


class OutputCollisionError(BuildError):
    """Two source files map to the same output path."""


class SourceUnreadableError(BuildError):
    """The source tree could not be indexed."""


class UnclassifiedError(BuildError):
    """Wraps any unexpected exception raised during read/render/write."""

    def __init__(self, message, original=None):
        self.original = original
        super().__init__(message)


class StyleFileNotFoundWarning(UserWarning):
    """A style or script file named in front matter is missing. Never raised."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Style file not found: {path}")
