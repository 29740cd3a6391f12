"""
pages/1_Session_Review.py – Read-only viewer for a downloaded session export.

Instructors drop in the JSON a student downloaded at the end of the
conversation and get the same timeline the student saw, plus the path taken
through the question bank and the run metadata.
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import streamlit as st

from career_intel.export import ExportFormatError, load_export
from career_intel.presenter import render_markdown, timeline_from_export

# ─── Page config ─────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Session Review – Career Intelligence",
    page_icon="🗂️",
    layout="centered",
)

st.markdown("## 🗂️ Session review")
st.caption("Load a career-intelligence-*.json file downloaded at the end of a session.")

uploaded = st.file_uploader("Session export", type=["json"])
if uploaded is None:
    st.info("No file loaded yet.")
    st.stop()

try:
    document = load_export(uploaded.getvalue())
except ExportFormatError as exc:
    st.error(f"That file is not a session export: {exc}")
    st.stop()

# ─── Summary ─────────────────────────────────────────────────────────────────
meta = document.get("metadata") or {}
path = document["path_taken"] or {}
c1, c2, c3, c4 = st.columns(4)
c1.metric("Turns", len(document["conversation"]))
c2.metric("Invitation", document["invitation_option"] or "—")
c3.metric("Duration", f"{document['duration_seconds']}s" if document["duration_seconds"] is not None else "—")
c4.metric("Tokens", f"{meta.get('total_input_tokens', 0)} / {meta.get('total_output_tokens', 0)}")

st.markdown(
    f"**Path taken:** `{path.get('q1') or '—'}` → `{path.get('q2') or '—'}` → `{path.get('q3') or '—'}`"
)
st.caption(
    f"Form v{meta.get('form_version', '?')} · model {meta.get('model_used', '?')} · "
    f"{document['timestamp_start'] or '?'} → {document['timestamp_end'] or 'unfinished'}"
)
st.markdown("---")

# ─── Timeline ────────────────────────────────────────────────────────────────
for turn, card in zip(document["conversation"], timeline_from_export(document)):
    with st.expander(f"{card.step}. {card.label} — {card.excerpt}"):
        st.markdown(f"**Question:** {card.question_text}")
        st.markdown("**Student:**")
        st.text(card.response)
        st.markdown("**Coach:**")
        st.markdown(render_markdown(card.reaction), unsafe_allow_html=True)
        routing = turn.get("routing")
        if routing:
            st.caption(f"Routed to `{routing.get('next_question_id')}` — {routing.get('rationale') or 'no rationale'}")
