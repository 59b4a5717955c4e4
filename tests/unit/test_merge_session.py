import pytest

from pdfmerger.domain.errors import InsufficientInputError
from pdfmerger.domain.models import MergePhase, MergeState
from pdfmerger.infrastructure.config import AppConfig
from pdfmerger.services.file_collection import FileCollection
from pdfmerger.services.merge_session import MergeSession


@pytest.fixture
def session(config, recording_engine) -> MergeSession:
    return MergeSession(config, engine=recording_engine)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_single_file_is_rejected_before_orchestration(
    session, recording_engine, fake_source
) -> None:
    session.add_files([fake_source("a.pdf", ["A1"])])

    with pytest.raises(InsufficientInputError) as exc_info:
        await session.merge()

    assert str(exc_info.value) == "Please upload at least two PDF files to merge."
    assert recording_engine.calls == []
    assert session.state == MergeState.idle()
    assert not session.can_merge


@pytest.mark.unit
@pytest.mark.asyncio
async def test_merge_uses_current_order(session, fake_source) -> None:
    session.add_files([fake_source("a.pdf", ["A1"]), fake_source("b.pdf", ["B1"])])
    session.add_files([fake_source("c.pdf", ["C1"])])
    session.move_file(0, 2)

    state = await session.merge()

    assert state.phase == MergePhase.COMPLETED
    assert state.artifact is not None
    assert state.artifact.content == b"B1\nC1\nA1"


@pytest.mark.unit
def test_add_files_reports_accepted_count(session, fake_source) -> None:
    a = fake_source("a.pdf", ["A1"])

    assert session.add_files([a, fake_source("notes.txt", ["x"])]) == 1
    assert session.add_files([a]) == 0
    assert len(session.collection) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_merge_keeps_collection(session, fake_source) -> None:
    session.add_files([fake_source("a.pdf", ["A1"]), fake_source("bad.pdf", ["BAD"])])

    state = await session.merge()

    assert state.phase == MergePhase.FAILED
    assert len(session.collection) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_collection_change_invalidates_completed_output(session, fake_source) -> None:
    session.add_files([fake_source("a.pdf", ["A1"]), fake_source("b.pdf", ["B1"])])
    await session.merge()
    store = session.orchestrator.artifacts

    session.move_file(1, 0)

    assert session.state == MergeState.idle()
    assert store.live_count == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reset_clears_everything(session, fake_source) -> None:
    session.add_files([fake_source("a.pdf", ["A1"]), fake_source("b.pdf", ["B1"])])
    await session.merge()

    session.reset()

    assert len(session.collection) == 0
    assert session.state == MergeState.idle()
    assert session.orchestrator.artifacts.live_count == 0


@pytest.mark.unit
def test_subscribers_see_collection_changes(session, fake_source) -> None:
    seen: list[tuple[list[str], MergePhase]] = []

    def listener(collection: FileCollection, state: MergeState) -> None:
        seen.append(([item.name for item in collection], state.phase))

    unsubscribe = session.subscribe(listener)
    session.add_files([fake_source("a.pdf", ["A1"]), fake_source("b.pdf", ["B1"])])
    session.reorder(list(reversed(session.collection.ids)))
    session.remove_file("missing")
    unsubscribe()
    session.remove_file(session.collection.ids[0])

    assert seen == [
        (["a.pdf", "b.pdf"], MergePhase.IDLE),
        (["b.pdf", "a.pdf"], MergePhase.IDLE),
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_guard_message_uses_configured_minimum(recording_engine, fake_source) -> None:
    config = AppConfig(min_merge_files=7, step_delay_ms=0)
    session = MergeSession(config, engine=recording_engine)
    session.add_files([fake_source("a.pdf", ["A1"]), fake_source("b.pdf", ["B1"])])

    with pytest.raises(InsufficientInputError) as exc_info:
        await session.merge()

    assert str(exc_info.value) == "Please upload at least 7 PDF files to merge."
