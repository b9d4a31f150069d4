"""Shared fixtures for GreenPrompt tests."""

import pytest

from greenprompt import PromptAnalyzer, RuleConfig


@pytest.fixture(scope="session")
def rules():
    """Default rules, compiled once."""
    return RuleConfig().compile()


@pytest.fixture(scope="session")
def analyzer():
    return PromptAnalyzer()
