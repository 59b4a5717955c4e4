from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import fitz
import pytest

from pdfmerger.domain.errors import LoadError
from pdfmerger.domain.models import SourceFile
from pdfmerger.infrastructure.config import AppConfig


def build_pdf(pages: list[str]) -> bytes:
    document = fitz.open()
    try:
        for text in pages:
            page = document.new_page()
            page.insert_text((72, 72), text)
        return document.tobytes(deflate=True, garbage=3)
    finally:
        document.close()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        min_merge_files=2, step_delay_ms=0, output_name="merged-document.pdf", log_level="DEBUG"
    )


@pytest.fixture
def pdf_factory() -> Callable[[list[str]], bytes]:
    return build_pdf


@pytest.fixture
def file_a() -> SourceFile:
    content = build_pdf(["File A page 1", "File A page 2"])
    return SourceFile.from_bytes("a.pdf", content, last_modified=1_700_000_000_000)


@pytest.fixture
def file_b() -> SourceFile:
    content = build_pdf(["File B page 1", "File B page 2", "File B page 3"])
    return SourceFile.from_bytes("b.pdf", content, last_modified=1_700_000_000_001)


@pytest.fixture
def file_c() -> SourceFile:
    content = build_pdf(["File C page 1"])
    return SourceFile.from_bytes("c.pdf", content, last_modified=1_700_000_000_002)


@pytest.fixture
def corrupt_file() -> SourceFile:
    return SourceFile.from_bytes(
        "broken.pdf", b"%PDF-1.4 not really a pdf", last_modified=1_700_000_000_003
    )


@dataclass
class FakeDocument:
    name: str
    pages: list[str]
    closed: bool = False


@dataclass
class RecordingEngine:
    """Engine double that treats file bytes as newline-separated page labels.

    Bytes starting with ``BAD`` fail to load.
    """

    calls: list[tuple[str, Any]] = field(default_factory=list)
    accumulators: list[FakeDocument] = field(default_factory=list)

    def create_accumulator(self) -> FakeDocument:
        accumulator = FakeDocument(name="accumulator", pages=[])
        self.accumulators.append(accumulator)
        self.calls.append(("create_accumulator", None))
        return accumulator

    def load_document(self, pdf_bytes: bytes) -> FakeDocument:
        self.calls.append(("load_document", pdf_bytes))
        if pdf_bytes.startswith(b"BAD"):
            raise LoadError("Unable to load PDF document")
        return FakeDocument(name="source", pages=pdf_bytes.decode().splitlines())

    def page_count(self, document: FakeDocument) -> int:
        return len(document.pages)

    def copy_pages(
        self, accumulator: FakeDocument, document: FakeDocument, page_indices: Sequence[int]
    ) -> list[str]:
        self.calls.append(("copy_pages", list(page_indices)))
        return [document.pages[index] for index in page_indices]

    def append_pages(self, accumulator: FakeDocument, copied_pages: list[str]) -> None:
        self.calls.append(("append_pages", list(copied_pages)))
        accumulator.pages.extend(copied_pages)

    def serialize(self, accumulator: FakeDocument) -> bytes:
        self.calls.append(("serialize", None))
        return "\n".join(accumulator.pages).encode()

    def close(self, document: FakeDocument) -> None:
        document.closed = True

    def loaded(self) -> list[bytes]:
        return [argument for name, argument in self.calls if name == "load_document"]


@pytest.fixture
def recording_engine() -> RecordingEngine:
    return RecordingEngine()


@pytest.fixture
def fake_source() -> Callable[..., SourceFile]:
    def make(name: str, pages: list[str], last_modified: int = 1) -> SourceFile:
        return SourceFile.from_bytes(
            name, "\n".join(pages).encode(), last_modified=last_modified
        )

    return make
