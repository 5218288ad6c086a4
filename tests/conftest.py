"""
Shared fixtures for the event graph test suite.
"""

import pytest

from eventgraph.configs import EventGraphSettings
from eventgraph.runtime import GraphRuntime, RuntimeContext
from tests.fakes import FakeCollaborator


@pytest.fixture
def settings() -> EventGraphSettings:
    return EventGraphSettings(max_steps=32, single_entry=False)


@pytest.fixture
def context() -> RuntimeContext:
    return RuntimeContext()


@pytest.fixture
def collaborator() -> FakeCollaborator:
    return FakeCollaborator()


@pytest.fixture
def runtime(context: RuntimeContext, collaborator: FakeCollaborator, settings: EventGraphSettings) -> GraphRuntime:
    return GraphRuntime(context, collaborator, settings=settings)
