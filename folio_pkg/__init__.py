"""
Folio - a static site builder with pluggable build strategies.

Folio indexes a source tree, renders Mustache and EJS-style templates and
Markdown pages, and writes a static HTML site. A build runs one of three
strategies: freeform (every file maps to one output), book (all pages in
one document) or blog (an index plus one page per post).
"""

__version__ = "1.0.0"
__author__ = "Folio Developers"
__email__ = "dev@folio.site"

from .disk import LocalDisk, MemoryDisk
from .models import BuildConfig, BuildResult, BuildStatus, Strategy
from .pipeline import StrategyPipeline, run_build

__all__ = [
    'BuildConfig',
    'BuildResult',
    'BuildStatus',
    'LocalDisk',
    'MemoryDisk',
    'Strategy',
    'StrategyPipeline',
    'run_build',
]
