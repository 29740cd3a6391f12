# streamlit_app.py – Career Intelligence
# Five-turn adaptive career conversation for graduating seniors

import sys
from pathlib import Path

# make src/ importable without installing the package
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st

from career_intel.config import get_settings
from career_intel.controller import ConversationController
from career_intel.export import export_filename, export_to_json
from career_intel.model_client import ModelCallError, ModelClient
from career_intel.presenter import (
    StepStatus,
    active_card,
    deliverable_card,
    progress_steps,
    render_markdown,
    timeline_cards,
)


# Colour constants
BLUE         = "#0078D4"
GREEN        = "#107C41"
TEXT_MUTED   = "#616161"
BORDER       = "#E1DFDD"
BLUE_LITE    = "#EFF6FF"

STATUS_STYLE = {
    StepStatus.DONE:     (GREEN, "✓"),
    StepStatus.ACTIVE:   (BLUE, "●"),
    StepStatus.UPCOMING: (TEXT_MUTED, "○"),
}

st.set_page_config(page_title="Career Intelligence", page_icon="🧭", layout="centered")

st.markdown(f"""
<style>
.ci-step-label {{ font-size: 0.8rem; text-align: center; }}
.ci-coach {{ background: {BLUE_LITE}; border-left: 4px solid {BLUE};
             padding: 0.75rem 1rem; border-radius: 6px; margin-bottom: 1rem; }}
.ci-question {{ font-size: 1.1rem; font-weight: 600; margin-bottom: 0.5rem; }}
.ci-deliverable {{ border: 1px solid {BORDER}; border-radius: 8px; padding: 1rem 1.25rem; }}
</style>
""", unsafe_allow_html=True)


# ─── Session bootstrap ───────────────────────────────────────────────────────

def _new_controller() -> ConversationController:
    settings = get_settings()
    return ConversationController(ModelClient(settings.engine), settings.engine)


if "controller" not in st.session_state:
    st.session_state["controller"] = _new_controller()

ctl: ConversationController = st.session_state["controller"]
settings = get_settings()


# ─── Sidebar ─────────────────────────────────────────────────────────────────

with st.sidebar:
    st.markdown("### 🧭 Career Intelligence")
    st.caption("Five questions. One honest read on where you stand.")
    st.markdown("---")
    for service, badge in settings.status_summary().items():
        st.markdown(f"**{service}:** {badge}")


# ─── Progress indicator ──────────────────────────────────────────────────────

_cols = st.columns(5)
for col, ps in zip(_cols, progress_steps(ctl.current_step, ctl.is_complete)):
    colour, icon = STATUS_STYLE[ps.status]
    weight = "700" if ps.status is StepStatus.ACTIVE else "400"
    col.markdown(
        f'<div class="ci-step-label" style="color:{colour};font-weight:{weight}">'
        f'{icon}<br>{ps.step}. {ps.label}</div>',
        unsafe_allow_html=True,
    )
st.markdown("")


# ─── Timeline of finished steps ──────────────────────────────────────────────

for card in timeline_cards(ctl.state):
    with st.expander(f"✓ {card.step}. {card.label} — {card.excerpt}"):
        if card.question_text and card.step <= 3:
            st.markdown(f"**Question:** {card.question_text}")
        st.markdown("**You said:**")
        st.text(card.response)
        if card.step < 5:
            st.markdown("**Coach:**")
            st.markdown(render_markdown(card.reaction), unsafe_allow_html=True)


# ─── Deliverable (after step 5) ──────────────────────────────────────────────

deliverable = deliverable_card(ctl.state)
if deliverable is not None:
    st.markdown("## Your positioning")
    st.markdown(f'<div class="ci-deliverable">{deliverable.html}</div>', unsafe_allow_html=True)
    st.markdown("")
    st.caption("Copy the text below (use the copy icon in the corner).")
    st.code(deliverable.markdown_source, language="markdown")
    st.download_button(
        "⬇ Download full session (JSON)",
        data=export_to_json(ctl.export()),
        file_name=export_filename(),
        mime="application/json",
        use_container_width=True,
    )
    st.stop()


# ─── Active card ─────────────────────────────────────────────────────────────
# Submits run in two passes: the click only queues the action and reruns, so
# the page is redrawn with the box locked before the model call blocks.

_draft_key = f"response_q{ctl.current_step}"
pending = st.session_state.get("pending_submit")
card = active_card(ctl, st.session_state.get(_draft_key, ""), pending=pending is not None)

if card.coach_message:
    st.markdown(f'<div class="ci-coach">{render_markdown(card.coach_message)}</div>',
                unsafe_allow_html=True)
if card.question_text:
    st.markdown(f'<div class="ci-question">{card.question_text}</div>', unsafe_allow_html=True)

draft = st.text_area(
    "Your response",
    key=_draft_key,
    value=card.draft,
    placeholder=card.placeholder,
    height=160,
    disabled=card.locked,
    label_visibility="collapsed",
)
card = active_card(ctl, draft, pending=pending is not None)


def _queue(action: str, text: str | None = None) -> None:
    st.session_state["pending_submit"] = (action, text)
    st.rerun()


if pending is not None:
    action, text = st.session_state.pop("pending_submit")
    st.button("Submit →", type="primary", disabled=True, use_container_width=True)
    with st.spinner("Thinking about what you said…"):
        try:
            if action == "retry":
                ctl.retry()
            else:
                ctl.submit(text)
        except ModelCallError:
            pass  # surfaced on the next run via ctl.last_error
    st.rerun()

if card.error_message:
    st.error(f"**Something went wrong.** {card.error_message}")
    if st.button("↻ Try again", type="primary", disabled=not card.show_retry):
        _queue("retry")
else:
    if st.button("Submit →", type="primary", disabled=not card.submit_enabled,
                 use_container_width=True):
        _queue("submit", draft)
    if draft and not card.submit_enabled:
        st.caption("A couple of full sentences, please (at least 20 characters).")
