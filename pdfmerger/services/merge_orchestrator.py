from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Sequence

from pdfmerger.adapters.pymupdf_adapter import PdfEngine
from pdfmerger.domain.errors import InsufficientInputError, MergeInProgressError
from pdfmerger.domain.models import MergeState, OutputArtifact, PendingFile
from pdfmerger.infrastructure.config import AppConfig
from pdfmerger.services.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

GENERIC_MERGE_ERROR = (
    "An error occurred while merging PDFs. Please check if the files are valid and not corrupted."
)

StateListener = Callable[[MergeState], None]


class _MergeCancelled(Exception):
    pass


class MergeOrchestrator:
    """Runs one merge at a time over an ordered snapshot of pending files.

    Files are read, loaded and appended strictly in snapshot order. Progress
    is published as a new ``MergeState`` after each file. Any failure aborts
    the remaining files and leaves no artifact behind; a completed merge owns
    exactly one artifact until the next reset or merge.
    """

    def __init__(self, engine: PdfEngine, artifacts: ArtifactStore, config: AppConfig) -> None:
        self.engine = engine
        self.artifacts = artifacts
        self.config = config
        self._state = MergeState.idle()
        self._listeners: list[StateListener] = []
        self._cancel_requested = False

    @property
    def state(self) -> MergeState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def request_merge(self, snapshot: Sequence[PendingFile]) -> MergeState:
        if self._state.is_merging:
            raise MergeInProgressError("A merge is already running.")
        files = tuple(snapshot)
        if not files:
            raise InsufficientInputError("There are no files to merge.")

        self._release_artifact()
        self._cancel_requested = False
        logger.info("Merging %d file(s)", len(files))

        accumulator: Any = None
        try:
            self._transition(MergeState.merging(0.0))
            accumulator = self.engine.create_accumulator()
            artifact = await self._merge_files(accumulator, files)
        except _MergeCancelled:
            logger.info("Merge cancelled")
            self._transition(MergeState.idle())
        except asyncio.CancelledError:
            logger.info("Merge task cancelled")
            self._transition(MergeState.idle())
            raise
        except Exception:
            logger.exception("Merge failed")
            self._transition(MergeState.failed(GENERIC_MERGE_ERROR, progress=self._state.progress))
        else:
            logger.info("Merged %d page(s) from %d file(s)", artifact.page_count, artifact.file_count)
            self._transition(MergeState.completed(artifact))
        finally:
            if accumulator is not None:
                self.engine.close(accumulator)
        return self._state

    def cancel(self) -> bool:
        if not self._state.is_merging:
            return False
        self._cancel_requested = True
        return True

    def reset(self) -> MergeState:
        if self._state.is_merging:
            raise MergeInProgressError("Cannot reset while a merge is running.")
        self._release_artifact()
        self._transition(MergeState.idle())
        return self._state

    def close(self) -> None:
        if self._state.is_merging:
            self.cancel()
            return
        self._release_artifact()
        self._state = MergeState.idle()
        self._listeners.clear()

    async def _merge_files(
        self, accumulator: Any, files: tuple[PendingFile, ...]
    ) -> OutputArtifact:
        total = len(files)
        merged_pages = 0
        for index, pending in enumerate(files):
            self._raise_if_cancelled()
            content = await pending.source.read()
            self._raise_if_cancelled()

            document = self.engine.load_document(content)
            try:
                page_count = self.engine.page_count(document)
                copied = self.engine.copy_pages(accumulator, document, list(range(page_count)))
                self.engine.append_pages(accumulator, copied)
            finally:
                self.engine.close(document)
            merged_pages += page_count
            logger.debug("Appended %d page(s) from %s", page_count, pending.name)

            await asyncio.sleep(self.config.step_delay_seconds)
            self._raise_if_cancelled()
            self._transition(MergeState.merging((index + 1) / total))

        content = self.engine.serialize(accumulator)
        return self.artifacts.allocate(
            content,
            name=self.config.output_name,
            page_count=merged_pages,
            file_count=total,
        )

    def _raise_if_cancelled(self) -> None:
        if self._cancel_requested:
            raise _MergeCancelled()

    def _release_artifact(self) -> None:
        artifact = self._state.artifact
        if artifact is not None:
            self.artifacts.release(artifact.handle)
            self._state = MergeState(phase=self._state.phase, progress=self._state.progress)

    def _transition(self, state: MergeState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
