"""
Shared pytest fixtures for the Career Intelligence test suite.
No fixture touches the network: model calls go through ScriptedClient.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)


import pytest

from factories import happy_path_replies, make_config, make_controller, run_to_completion


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def fresh_controller():
    ctl, _ = make_controller()
    return ctl


@pytest.fixture
def completed_controller():
    ctl, _ = make_controller(happy_path_replies(option="B"))
    run_to_completion(ctl)
    return ctl
