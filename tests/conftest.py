import json
from types import SimpleNamespace

import pytest

from risk_portal.activity import AuditTrail, FeedbackBox, NotificationCenter
from risk_portal.database import init_db, make_engine, make_session_factory
from risk_portal.pipeline import PredictionPipeline
from risk_portal.profiles import ProfileAggregator
from risk_portal.registry import UserRegistry
from risk_portal.store import CollectionStore
from risk_portal.utils.narrative_utils import NarrativeGenerator


class FakeCompletions:
    def __init__(self, content=None, exc=None):
        self.content = content
        self.exc = exc
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeGroq:
    def __init__(self, content=None, exc=None):
        self.completions = FakeCompletions(content=content, exc=exc)
        self.chat = SimpleNamespace(completions=self.completions)


def good_payload(**extra):
    body = {
        "summary": "Solid, consistent performance across all components.",
        "recommendations": ["Keep attending", "Review internals weekly", "Start assignments early"],
    }
    body.update(extra)
    return json.dumps(body)


@pytest.fixture
def store():
    engine = make_engine("sqlite://")
    init_db(engine)
    return CollectionStore(make_session_factory(engine))


@pytest.fixture
def notifications(store):
    return NotificationCenter(store, capacity=50)


@pytest.fixture
def audit(store):
    return AuditTrail(store, capacity=100)


@pytest.fixture
def feedback(store):
    return FeedbackBox(store)


@pytest.fixture
def registry(store, notifications):
    return UserRegistry(store, notifications)


@pytest.fixture
def profiles(store):
    return ProfileAggregator(store)


@pytest.fixture
def failing_narrator():
    return NarrativeGenerator(client=FakeGroq(exc=RuntimeError("upstream 500")))


@pytest.fixture
def pipeline(store, notifications, failing_narrator):
    return PredictionPipeline(store, failing_narrator, notifications)
