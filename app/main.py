from __future__ import annotations

import asyncio
from typing import Any

import streamlit as st

from pdfmerger.domain.errors import ValidationError
from pdfmerger.domain.models import MergePhase, MergeState, PendingFile, SourceFile
from pdfmerger.infrastructure.config import AppConfig
from pdfmerger.infrastructure.logging import configure_logging
from pdfmerger.services.file_collection import FileCollection
from pdfmerger.services.merge_session import MergeSession


def _init_state() -> MergeSession:
    if "merge_session" not in st.session_state:
        config = AppConfig.from_env()
        configure_logging(config)
        st.session_state.merge_session = MergeSession(config)
    st.session_state.setdefault("merge_error", "")
    st.session_state.setdefault("uploader_token", 0)
    session: MergeSession = st.session_state.merge_session
    return session


def _to_source(uploaded: Any) -> SourceFile:
    # Browsers do not hand the modification time to Streamlit.
    return SourceFile.from_bytes(
        uploaded.name,
        uploaded.getvalue(),
        last_modified=0,
        content_type=uploaded.type,
    )


def _render_uploader(session: MergeSession) -> None:
    uploaded = st.file_uploader(
        "Click to upload or drag and drop",
        type=["pdf"],
        accept_multiple_files=True,
        key=f"merge_upload_{st.session_state.uploader_token}",
    )
    if uploaded:
        session.add_files(_to_source(item) for item in uploaded)
        st.session_state.merge_error = ""
        st.session_state.uploader_token += 1
        st.rerun()


def _render_file_row(session: MergeSession, index: int, pending: PendingFile, total: int) -> None:
    locked = session.state.is_merging
    name_col, up_col, down_col, remove_col = st.columns([6, 1, 1, 1])
    with name_col:
        st.markdown(f"**{pending.name}**")
        st.caption(pending.display_size)
    with up_col:
        if st.button("↑", key=f"up_{pending.file_id}", disabled=locked or index == 0):
            session.move_file(index, index - 1)
            st.rerun()
    with down_col:
        if st.button("↓", key=f"down_{pending.file_id}", disabled=locked or index == total - 1):
            session.move_file(index, index + 1)
            st.rerun()
    with remove_col:
        if st.button("✕", key=f"remove_{pending.file_id}", disabled=locked):
            session.remove_file(pending.file_id)
            st.rerun()


def _render_file_list(session: MergeSession) -> None:
    collection: FileCollection = session.collection
    st.subheader("Your Files", anchor=False)
    st.caption(
        f"{len(collection)} files, {collection.total_size_bytes / 1024 / 1024:.2f} MB total"
    )
    for index, pending in enumerate(collection):
        _render_file_row(session, index, pending, len(collection))


def _run_merge(session: MergeSession) -> None:
    bar = st.progress(0, text="Merging in progress...")

    def on_change(_: FileCollection, state: MergeState) -> None:
        if state.is_merging:
            bar.progress(state.percent, text=f"Merging in progress... {state.percent}%")

    unsubscribe = session.subscribe(on_change)
    try:
        state = asyncio.run(session.merge())
    except ValidationError as exc:
        st.session_state.merge_error = str(exc)
        return
    finally:
        unsubscribe()
        bar.empty()

    if state.phase == MergePhase.FAILED:
        st.session_state.merge_error = state.error or ""
    st.rerun()


def _render_actions(session: MergeSession) -> None:
    state = session.state
    artifact = state.artifact
    primary_col, secondary_col = st.columns(2)

    if state.phase == MergePhase.COMPLETED and artifact is not None:
        with primary_col:
            st.download_button(
                "Download Merged PDF",
                data=session.orchestrator.artifacts.resolve(artifact.handle).content,
                file_name=artifact.name,
                mime=artifact.mime_type,
                type="primary",
                use_container_width=True,
            )
        with secondary_col:
            if st.button("Start Over", use_container_width=True):
                session.reset()
                st.session_state.merge_error = ""
                st.rerun()
        st.caption(f"{artifact.page_count} pages from {artifact.file_count} files")
        return

    with primary_col:
        if st.button(
            f"Merge {len(session.collection)} Files",
            type="primary",
            disabled=not session.can_merge,
            use_container_width=True,
        ):
            st.session_state.merge_error = ""
            _run_merge(session)
    with secondary_col:
        if st.button("Clear All", use_container_width=True):
            session.reset()
            st.session_state.merge_error = ""
            st.rerun()


def main() -> None:
    st.set_page_config(page_title="PDF Merger", layout="centered")
    st.title("PDF Merger", anchor=False)

    session = _init_state()

    if session.state.phase != MergePhase.COMPLETED:
        _render_uploader(session)

    if len(session.collection) > 0:
        _render_file_list(session)
        _render_actions(session)

    if st.session_state.merge_error:
        st.error(st.session_state.merge_error)


if __name__ == "__main__":
    main()
