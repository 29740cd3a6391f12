"""
pages/2_Peer_Discussion.py – Partner discussion questions for a written response.

A student pastes their response to a course prompt; their partner gets a
handful of follow-up questions and an opening observation for a
face-to-face conversation.
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import streamlit as st

from career_intel.discussion import (
    BadGatewayError,
    DiscussionRequestError,
    generate_discussion_questions,
)
from career_intel.model_client import ModelCallError

st.set_page_config(
    page_title="Peer Discussion – Career Intelligence",
    page_icon="💬",
    layout="centered",
)

st.markdown("## 💬 Peer discussion questions")

with st.form("discussion_form"):
    course = st.selectbox("Course", ["", "CST349", "CST395"], index=0)
    prompt = st.text_area("Original prompt", height=90)
    response = st.text_area("Student's written response", height=200,
                            help="Only the first 3,000 characters are sent.")
    context = st.text_input("Activity context (optional)")
    num_questions = st.slider("Number of questions", min_value=1, max_value=5, value=3)
    submitted = st.form_submit_button("Generate questions →", type="primary")

if submitted:
    try:
        with st.spinner("Reading the response…"):
            result = generate_discussion_questions(
                prompt,
                response,
                context=context or None,
                course=course or None,
                num_questions=num_questions,
            )
    except DiscussionRequestError as exc:
        st.error(str(exc))
    except (ModelCallError, BadGatewayError) as exc:
        st.error(f"AI service temporarily unavailable. Please try again. ({exc})")
    else:
        st.success(result.observation)
        for i, question in enumerate(result.questions, start=1):
            st.markdown(f"**{i}.** {question}")
