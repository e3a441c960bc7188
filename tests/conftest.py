#!/usr/bin/env python3
"""
Pytest configuration and fixtures for the thinking server
"""

import sys
import logfire
import pytest
import pytest_asyncio
from pathlib import Path

# Add the src directory to the path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Keep spans local during tests
logfire.configure(send_to_logfire=False, console=False)

from app.handler import RequestDispatcher
from app.session import SessionManager
from engine.base import BaseEngine, UpstreamError
from tools.thinking import create_default_registry


class StubEngine(BaseEngine):
    """Engine double that answers from a fixed string or raises."""

    def __init__(self, answer="4", error=None):
        self.answer = answer
        self.error = error
        self.queries = []

    async def think(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def stub_engine():
    """Engine returning "4" for every query"""
    return StubEngine()


@pytest.fixture
def failing_engine():
    """Engine simulating an unreachable reasoning API"""
    return StubEngine(error=UpstreamError())


@pytest.fixture
def registry(stub_engine):
    return create_default_registry(stub_engine)


@pytest.fixture
def dispatcher(registry):
    return RequestDispatcher(registry)


@pytest_asyncio.fixture
async def session_manager(dispatcher):
    """Session manager that closes every session on teardown"""
    manager = SessionManager(dispatcher)
    yield manager
    await manager.shutdown()


@pytest.fixture
def deepseek_env(monkeypatch):
    """Minimal environment for loading Settings"""
    monkeypatch.setenv("DEEPSEEK_R1_API_KEY", "test-key")
    monkeypatch.setenv("DEEPSEEK_R1_API_URL", "https://api.example.com/v1/chat/completions")
    monkeypatch.setenv("DEEPSEEK_R1_MODEL", "deepseek-reasoner")
    return monkeypatch
