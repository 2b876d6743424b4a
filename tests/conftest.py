"""Shared fixtures for envcraft tests."""
import logging

import pytest


class ScriptedConfirm:
    """Stand-in for the interactive prompt.

    Answers are looked up by a substring of the question; unmatched
    questions take their default. Every question asked is recorded.
    """

    def __init__(self, answers=None):
        self.answers = answers or {}
        self.asked = []

    def __call__(self, default, prompt):
        self.asked.append(prompt)
        for fragment, answer in self.answers.items():
            if fragment in prompt:
                return answer
        return bool(default)


@pytest.fixture
def scripted_confirm():
    return ScriptedConfirm


@pytest.fixture(autouse=True)
def reset_envcraft_logging(monkeypatch):
    """Keep handlers installed by the CLI from leaking between tests."""
    monkeypatch.delenv("ENVCRAFT_STORE_DIR", raising=False)
    monkeypatch.delenv("ENVCRAFT_LOG_LEVEL", raising=False)
    yield
    for name in ("envcraft", "envcraft.perf", "envcraft.audit"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.propagate = True
