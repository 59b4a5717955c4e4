from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, TypeVar

from pdfmerger.domain.models import PDF_MIME_TYPE, PendingFile, SourceFile

logger = logging.getLogger(__name__)

T = TypeVar("T")


def move_item(items: tuple[T, ...], source_index: int, destination_index: int) -> tuple[T, ...]:
    """Relocate one element, shifting the ones in between. Out-of-range indices are ignored."""
    size = len(items)
    if not (0 <= source_index < size and 0 <= destination_index < size):
        return items
    if source_index == destination_index:
        return items
    remaining = items[:source_index] + items[source_index + 1 :]
    moved = items[source_index]
    return remaining[:destination_index] + (moved,) + remaining[destination_index:]


def apply_moves(items: tuple[T, ...], moves: Iterable[tuple[int, int]]) -> tuple[T, ...]:
    for source_index, destination_index in moves:
        items = move_item(items, source_index, destination_index)
    return items


@dataclass(frozen=True)
class FileCollection:
    files: tuple[PendingFile, ...] = ()

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[PendingFile]:
        return iter(self.files)

    @property
    def ids(self) -> list[str]:
        return [item.file_id for item in self.files]

    @property
    def total_size_bytes(self) -> int:
        return sum(item.size_bytes for item in self.files)

    def snapshot(self) -> tuple[PendingFile, ...]:
        return self.files

    def add(self, selection: Iterable[SourceFile]) -> FileCollection:
        seen = set(self.ids)
        new_files: list[PendingFile] = []
        for source in selection:
            if source.content_type != PDF_MIME_TYPE:
                logger.debug("Skipping %s (%s): not a PDF", source.name, source.content_type)
                continue
            pending = PendingFile.from_source(source)
            if pending.file_id in seen:
                continue
            seen.add(pending.file_id)
            new_files.append(pending)
        if not new_files:
            return self
        return FileCollection(files=self.files + tuple(new_files))

    def remove(self, file_id: str) -> FileCollection:
        remaining = tuple(item for item in self.files if item.file_id != file_id)
        if len(remaining) == len(self.files):
            return self
        return FileCollection(files=remaining)

    def move(self, source_index: int, destination_index: int) -> FileCollection:
        moved = move_item(self.files, source_index, destination_index)
        if moved is self.files:
            return self
        return FileCollection(files=moved)

    def reorder(self, new_order: Sequence[str]) -> FileCollection:
        if Counter(new_order) != Counter(self.ids):
            logger.debug("Ignoring reorder that does not permute the current files")
            return self
        by_id = {item.file_id: item for item in self.files}
        return FileCollection(files=tuple(by_id[file_id] for file_id in new_order))

    def clear(self) -> FileCollection:
        return FileCollection()
