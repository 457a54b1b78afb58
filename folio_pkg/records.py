"""
Persistence of completed build records.
"""

import json
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models import BuildLogLine


class BuildRecordStore(ABC):
    """Accepts the metadata of a successful build and returns its identifier."""

    @abstractmethod
    def create(self, label: str, source_disk_id: str, logs: List[BuildLogLine]) -> str:
        ...

    @staticmethod
    def new_record(label: str, source_disk_id: str, logs: List[BuildLogLine]) -> Dict[str, Any]:
        return {
            'guid': uuid.uuid4().hex,
            'label': label,
            'source_disk_id': source_disk_id,
            'created_at': datetime.now(timezone.utc).isoformat(),
            'logs': [line.to_dict() for line in logs],
        }


class MemoryBuildStore(BuildRecordStore):
    def __init__(self):
        self.records: Dict[str, Dict[str, Any]] = {}

    def create(self, label, source_disk_id, logs):
        record = self.new_record(label, source_disk_id, logs)
        self.records[record['guid']] = record
        return record['guid']

    def get(self, guid: str) -> Optional[Dict[str, Any]]:
        return self.records.get(guid)


class JsonBuildStore(BuildRecordStore):
    """Stores each build as ``<guid>.json`` inside a directory."""

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, guid: str) -> str:
        return os.path.join(self.directory, f'{guid}.json')

    def create(self, label, source_disk_id, logs):
        record = self.new_record(label, source_disk_id, logs)
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(self._path(record['guid']), 'w', encoding='utf-8') as f:
                json.dump(record, f, indent=2)
        except (IOError, OSError, PermissionError) as e:
            raise IOError(f"Error writing build record to {self.directory}: {e}") from e
        return record['guid']

    def get(self, guid: str) -> Optional[Dict[str, Any]]:
        path = self._path(guid)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def list(self) -> List[Dict[str, Any]]:
        """All stored records, oldest first."""
        if not os.path.isdir(self.directory):
            return []
        records = []
        for name in os.listdir(self.directory):
            if name.endswith('.json'):
                record = self.get(name[:-len('.json')])
                if record:
                    records.append(record)
        return sorted(records, key=lambda r: r.get('created_at', ''))
