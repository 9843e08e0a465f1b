"""Data structures shared by the mirror runner and the command line."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class MirrorSettings:
    """Resolved values for a single mirror run."""

    container_name: str
    base_path: str
    prefix: Optional[str] = None


@dataclass
class MirrorRun:
    """Counters and outcome of one pass over a container."""

    total: int = 0
    skipped: int = 0
    downloaded: int = 0
    skipped_names: List[str] = field(default_factory=list)
    downloaded_names: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def processed(self) -> int:
        return self.downloaded + self.skipped

    @property
    def reconciled(self) -> bool:
        """True when every listed blob was either skipped or downloaded."""
        return self.processed == self.total

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.reconciled

    def record_skipped(self, blob_name: str) -> None:
        self.skipped += 1
        self.skipped_names.append(blob_name)

    def record_downloaded(self, blob_name: str) -> None:
        self.downloaded += 1
        self.downloaded_names.append(blob_name)
