from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence, cast

import fitz  # type: ignore[import-untyped]

from pdfmerger.domain.errors import LoadError, ParsingError


class PdfEngine(Protocol):
    def create_accumulator(self) -> Any: ...

    def load_document(self, pdf_bytes: bytes) -> Any: ...

    def page_count(self, document: Any) -> int: ...

    def copy_pages(self, accumulator: Any, document: Any, page_indices: Sequence[int]) -> Any: ...

    def append_pages(self, accumulator: Any, copied_pages: Any) -> None: ...

    def serialize(self, accumulator: Any) -> bytes: ...

    def close(self, document: Any) -> None: ...


@dataclass(frozen=True)
class CopiedPages:
    """Page runs lifted from a loaded document, ready to be appended."""

    source: fitz.Document
    runs: tuple[tuple[int, int], ...]

    @property
    def page_count(self) -> int:
        return sum(end - start + 1 for start, end in self.runs)


def _contiguous_runs(page_indices: Sequence[int]) -> tuple[tuple[int, int], ...]:
    runs: list[tuple[int, int]] = []
    if not page_indices:
        return ()
    run_start = page_indices[0]
    run_end = page_indices[0]
    for index in page_indices[1:]:
        if index == run_end + 1:
            run_end = index
            continue
        runs.append((run_start, run_end))
        run_start = index
        run_end = index
    runs.append((run_start, run_end))
    return tuple(runs)


class PyMuPdfEngine:
    def create_accumulator(self) -> fitz.Document:
        return fitz.open()

    def load_document(self, pdf_bytes: bytes) -> fitz.Document:
        try:
            document = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as exc:
            raise LoadError("Unable to load PDF document") from exc
        if document.needs_pass:
            document.close()
            raise LoadError("PDF document is password-protected")
        if document.page_count == 0:
            document.close()
            raise LoadError("PDF document has no pages")
        return document

    def page_count(self, document: fitz.Document) -> int:
        return int(document.page_count)

    def copy_pages(
        self, accumulator: fitz.Document, document: fitz.Document, page_indices: Sequence[int]
    ) -> CopiedPages:
        for index in page_indices:
            if index < 0 or index >= document.page_count:
                raise ParsingError(f"Page index {index} out of range")
        return CopiedPages(source=document, runs=_contiguous_runs(list(page_indices)))

    def append_pages(self, accumulator: fitz.Document, copied_pages: CopiedPages) -> None:
        try:
            for from_page, to_page in copied_pages.runs:
                accumulator.insert_pdf(copied_pages.source, from_page=from_page, to_page=to_page)
        except Exception as exc:
            raise ParsingError("Unable to append copied pages") from exc

    def serialize(self, accumulator: fitz.Document) -> bytes:
        try:
            return cast(
                bytes,
                accumulator.tobytes(
                    garbage=4,
                    clean=True,
                    deflate=True,
                    deflate_images=True,
                    deflate_fonts=True,
                ),
            )
        except Exception as exc:
            raise ParsingError("Unable to serialize merged PDF") from exc

    def close(self, document: fitz.Document) -> None:
        if not document.is_closed:
            document.close()
