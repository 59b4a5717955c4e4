from __future__ import annotations

import logging
import uuid

from pdfmerger.domain.errors import ResourceLeakError
from pdfmerger.domain.models import OutputArtifact

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Hands out revocable handles for merged output.

    At most one artifact may be live; the previous one has to be released
    before the next allocation.
    """

    def __init__(self) -> None:
        self._live: dict[str, OutputArtifact] = {}
        self.allocated_total = 0
        self.released_total = 0

    @property
    def live_count(self) -> int:
        return len(self._live)

    def allocate(
        self, content: bytes, name: str, page_count: int, file_count: int
    ) -> OutputArtifact:
        if self._live:
            raise ResourceLeakError("Previous artifact must be released before allocating a new one")
        artifact = OutputArtifact(
            handle=str(uuid.uuid4()),
            name=name,
            content=content,
            page_count=page_count,
            file_count=file_count,
        )
        self._live[artifact.handle] = artifact
        self.allocated_total += 1
        logger.info("Allocated artifact %s (%d bytes)", artifact.handle, len(content))
        return artifact

    def resolve(self, handle: str) -> OutputArtifact:
        if handle not in self._live:
            raise KeyError(f"Artifact not live: {handle}")
        return self._live[handle]

    def release(self, handle: str) -> None:
        if handle not in self._live:
            raise KeyError(f"Artifact not live: {handle}")
        del self._live[handle]
        self.released_total += 1
        logger.info("Released artifact %s", handle)
