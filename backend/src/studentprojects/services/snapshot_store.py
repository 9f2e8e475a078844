from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from ..models import ProjectRecord


@dataclass(frozen=True)
class ProjectSnapshot:
    records: Mapping[str, ProjectRecord] = field(default_factory=lambda: MappingProxyType({}))
    completed_at: Optional[datetime] = None


class ProjectSnapshotStore:
    """Holds the result of the last successful crawl.

    ``replace`` swaps in a new snapshot with a single assignment, so readers
    see either the previous or the new crawl result, never a mix.
    """

    def __init__(self) -> None:
        self._snapshot = ProjectSnapshot()

    @property
    def snapshot(self) -> ProjectSnapshot:
        return self._snapshot

    def replace(self, records: Dict[str, ProjectRecord]) -> ProjectSnapshot:
        snapshot = ProjectSnapshot(
            records=MappingProxyType(dict(records)),
            completed_at=datetime.now(timezone.utc),
        )
        self._snapshot = snapshot
        return snapshot

    def all(self) -> Mapping[str, ProjectRecord]:
        return self._snapshot.records

    def get(self, project_id: str) -> Optional[ProjectRecord]:
        return self._snapshot.records.get(project_id)

    def __len__(self) -> int:
        return len(self._snapshot.records)
