from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from pdfmerger.adapters.pymupdf_adapter import PdfEngine, PyMuPdfEngine
from pdfmerger.domain.errors import InsufficientInputError
from pdfmerger.domain.models import MergePhase, MergeState, SourceFile
from pdfmerger.infrastructure.config import AppConfig
from pdfmerger.services.artifact_store import ArtifactStore
from pdfmerger.services.file_collection import FileCollection
from pdfmerger.services.merge_orchestrator import MergeOrchestrator

logger = logging.getLogger(__name__)

SessionListener = Callable[[FileCollection, MergeState], None]

_COUNT_WORDS = {2: "two", 3: "three", 4: "four", 5: "five"}


def _count_word(count: int) -> str:
    return _COUNT_WORDS.get(count, str(count))


class MergeSession:
    def __init__(
        self,
        config: AppConfig,
        orchestrator: MergeOrchestrator | None = None,
        engine: PdfEngine | None = None,
    ) -> None:
        self.config = config
        self.orchestrator = orchestrator or MergeOrchestrator(
            engine or PyMuPdfEngine(), ArtifactStore(), config
        )
        self.collection = FileCollection()
        self._listeners: list[SessionListener] = []
        self.orchestrator.subscribe(self._on_state)

    @property
    def state(self) -> MergeState:
        return self.orchestrator.state

    @property
    def can_merge(self) -> bool:
        return len(self.collection) >= self.config.min_merge_files and not self.state.is_merging

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_files(self, selection: Iterable[SourceFile]) -> int:
        before = len(self.collection)
        self._replace(self.collection.add(selection))
        added = len(self.collection) - before
        logger.info("Added %d file(s); %d pending", added, len(self.collection))
        return added

    def remove_file(self, file_id: str) -> None:
        self._replace(self.collection.remove(file_id))

    def move_file(self, source_index: int, destination_index: int) -> None:
        self._replace(self.collection.move(source_index, destination_index))

    def reorder(self, new_order: Sequence[str]) -> None:
        self._replace(self.collection.reorder(new_order))

    async def merge(self) -> MergeState:
        if len(self.collection) < self.config.min_merge_files:
            required = _count_word(self.config.min_merge_files)
            raise InsufficientInputError(f"Please upload at least {required} PDF files to merge.")
        return await self.orchestrator.request_merge(self.collection.snapshot())

    def reset(self) -> None:
        self.orchestrator.reset()
        self._replace(self.collection.clear())

    def _replace(self, collection: FileCollection) -> None:
        if collection is self.collection:
            return
        self.collection = collection
        if self.state.phase in (MergePhase.COMPLETED, MergePhase.FAILED):
            # The previous output no longer reflects the list.
            self.orchestrator.reset()
        else:
            self._notify()

    def _on_state(self, state: MergeState) -> None:
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.collection, self.state)
