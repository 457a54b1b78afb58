"""
Data types shared across the Folio build pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigError


class Strategy(str, Enum):
    """Whole-build processing modes."""

    FREEFORM = 'freeform'
    BOOK = 'book'
    BLOG = 'blog'

    @classmethod
    def parse(cls, value) -> 'Strategy':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ', '.join(s.value for s in cls)
            raise ConfigError(f"Unknown build strategy: {value} (expected one of {choices})") from None


class BuildStatus(str, Enum):
    IDLE = 'idle'
    INDEXING = 'indexing'
    COPYING_ASSETS = 'copying-assets'
    STRATEGY_PROCESSING = 'strategy-processing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self) -> bool:
        return self in (BuildStatus.COMPLETED, BuildStatus.FAILED, BuildStatus.CANCELLED)


@dataclass(frozen=True)
class BuildConfig:
    """Immutable settings for a single build run.

    ``source_root`` and ``output_root`` are disk-absolute POSIX paths, e.g.
    ``/`` and ``/.build``.
    """

    strategy: Strategy
    source_root: str = '/'
    output_root: str = '/.build'
    require_layout: bool = False
    minify: bool = False
    site: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FileNode:
    path: str
    kind: str = 'file'

    @property
    def is_file(self) -> bool:
        return self.kind == 'file'

    @property
    def is_dir(self) -> bool:
        return self.kind == 'dir'


@dataclass(frozen=True)
class PageData:
    """One parsed markdown file, before any layout is applied."""

    path: str
    raw_markdown: str
    front_matter: Dict[str, Any]
    rendered_html: str
    source_node: FileNode

    @property
    def title(self) -> Optional[str]:
        title = self.front_matter.get('title')
        return str(title) if title not in (None, '') else None


@dataclass(frozen=True)
class BuildLogLine:
    timestamp: datetime
    message: str
    level: str = 'info'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(),
            'message': self.message,
            'level': self.level,
        }


@dataclass
class BuildResult:
    success: bool
    status: BuildStatus = BuildStatus.COMPLETED
    error: Optional[str] = None
    build_id: Optional[str] = None
    logs: List[BuildLogLine] = field(default_factory=list)
