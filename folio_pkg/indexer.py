"""
Source indexing.

The SourceIndexer walks a Disk once per ``index()`` call and keeps the result in
memory. Only one pass may run at a time against a source; concurrent callers
queue on an asyncio lock instead of interleaving.
"""

import asyncio
import logging
from typing import Callable, Iterator, List, Optional

from .disk import Disk, normalize_disk_path
from .errors import BuildError, SourceUnreadableError
from .models import FileNode

NodePredicate = Callable[[FileNode], bool]


class SourceIndexer:
    def __init__(self, disk: Disk, root: str = '/'):
        self.disk = disk
        self.root = normalize_disk_path(root)
        self.index_count = 0
        self.logger = logging.getLogger('Folio.indexer')
        self._lock = asyncio.Lock()
        self._nodes: Optional[List[FileNode]] = None

    @property
    def is_indexed(self) -> bool:
        return self._nodes is not None

    @property
    def nodes(self) -> List[FileNode]:
        if self._nodes is None:
            raise BuildError("Source has not been indexed yet")
        return list(self._nodes)

    async def index(self) -> None:
        """Rebuild the in-memory tree. Waits for any pass already in progress."""
        async with self._lock:
            self.logger.debug(f"Indexing {self.disk!r} from {self.root}")
            try:
                nodes = await asyncio.to_thread(self._scan)
            except OSError as e:
                raise SourceUnreadableError(f"Unable to index source {self.root}: {e}") from e
            self._nodes = nodes
            self.index_count += 1
            self.logger.debug(f"Indexed {len(nodes)} nodes")

    def _scan(self) -> List[FileNode]:
        nodes = [FileNode(path=normalize_disk_path(path), kind=kind) for path, kind in self.disk.walk(self.root)]
        nodes.sort(key=lambda node: node.path)
        return nodes

    def iterator(self, predicate: Optional[NodePredicate] = None) -> Iterator[FileNode]:
        """Lazily yield indexed nodes matching ``predicate`` in path order."""
        nodes = self.nodes
        return (node for node in nodes if predicate is None or predicate(node))

    def files(self) -> Iterator[FileNode]:
        return self.iterator(lambda node: node.is_file)
