from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable

from pdfmerger.domain.errors import FileIOError

PDF_MIME_TYPE = "application/pdf"

ContentReader = Callable[[], Awaitable[bytes]]


def _guess_content_type(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


@dataclass(frozen=True)
class SourceFile:
    """A raw entry handed over by a file picker or a drop zone.

    The bytes are never held here; ``read`` fetches them on demand.
    """

    name: str
    content_type: str
    last_modified: int
    size_bytes: int
    reader: ContentReader = field(repr=False, compare=False)

    async def read(self) -> bytes:
        try:
            return await self.reader()
        except OSError as exc:
            raise FileIOError(f"Unable to read {self.name}") from exc

    @classmethod
    def from_bytes(
        cls,
        name: str,
        content: bytes,
        last_modified: int = 0,
        content_type: str | None = None,
    ) -> SourceFile:
        async def reader() -> bytes:
            return content

        return cls(
            name=name,
            content_type=content_type or _guess_content_type(name),
            last_modified=last_modified,
            size_bytes=len(content),
            reader=reader,
        )

    @classmethod
    def from_path(cls, path: Path) -> SourceFile:
        stat = path.stat()

        async def reader() -> bytes:
            return path.read_bytes()

        return cls(
            name=path.name,
            content_type=_guess_content_type(path.name),
            last_modified=int(stat.st_mtime * 1000),
            size_bytes=stat.st_size,
            reader=reader,
        )

    @property
    def identity(self) -> str:
        return f"{self.name}-{self.last_modified}-{self.size_bytes}"


@dataclass(frozen=True)
class PendingFile:
    file_id: str
    name: str
    display_size: str
    source: SourceFile = field(repr=False)

    @classmethod
    def from_source(cls, source: SourceFile) -> PendingFile:
        return cls(
            file_id=source.identity,
            name=source.name,
            display_size=f"{source.size_bytes / 1024 / 1024:.2f} MB",
            source=source,
        )

    @property
    def size_bytes(self) -> int:
        return self.source.size_bytes


class MergePhase(str, Enum):
    IDLE = "idle"
    MERGING = "merging"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class OutputArtifact:
    handle: str
    name: str
    content: bytes = field(repr=False)
    page_count: int
    file_count: int
    mime_type: str = PDF_MIME_TYPE

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class MergeState:
    phase: MergePhase
    progress: float = 0.0
    artifact: OutputArtifact | None = None
    error: str | None = None

    @classmethod
    def idle(cls) -> MergeState:
        return cls(phase=MergePhase.IDLE)

    @classmethod
    def merging(cls, progress: float) -> MergeState:
        return cls(phase=MergePhase.MERGING, progress=min(max(progress, 0.0), 1.0))

    @classmethod
    def completed(cls, artifact: OutputArtifact) -> MergeState:
        return cls(phase=MergePhase.COMPLETED, progress=1.0, artifact=artifact)

    @classmethod
    def failed(cls, error: str, progress: float = 0.0) -> MergeState:
        return cls(phase=MergePhase.FAILED, progress=progress, error=error)

    @property
    def is_merging(self) -> bool:
        return self.phase == MergePhase.MERGING

    @property
    def percent(self) -> int:
        return round(self.progress * 100)
