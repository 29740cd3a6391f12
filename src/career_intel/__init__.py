"""
career_intel — Career Intelligence conversation engine
======================================================
A five-turn adaptive interview for graduating students. A fixed question
bank, a language model that both coaches and picks the next question, and a
final synthesis turn that produces a positioning deliverable.

Module map
----------
  config.py          Settings loaded from .env (proxy endpoint, model, form version).
  models.py          Question, session-state dataclasses, Pydantic reply models.
  question_bank.py   Opening question + Q2 / Q3 branch options, lookup by id.
  prompts.py         Per-turn system prompts and the placeholder assembler.
  model_client.py    POST to the AI proxy; NetworkError / EmptyResponseError.
  parsers.py         JSON-extraction ladder, routing parser, Q5 trailer parser.
  controller.py      Five-turn state machine; owns all session state.
  export.py          Downloadable session document + loader for review.
  presenter.py       Progress / active card / timeline / deliverable views.
  discussion.py      Peer discussion question generator (stateless).

Turn order
----------
  Q1 (fixed) → model picks Q2 → model picks Q3 → Q3 reply asks Q4
  → Q4 synthesis → Q5 reaction → deliverable + INVITATION_OPTION
"""
__version__ = "1.0.0"
