"""Shared fixtures for the focus recommender tests."""

import numpy as np
import pytest

from config.config import EngineConfig
from services.recommendation_engine import AdaptiveRecommendationEngine
from services.session_planner import SessionPlanner
from services.session_store import SessionStore
from services.storage import FailSoftRepository, InMemoryStateStore


class FakeRedis:
    """Dict-backed stand-in for the handful of redis hash commands we use."""

    def __init__(self):
        self.hashes = {}

    def hget(self, name, key):
        return self.hashes.get(name, {}).get(key)

    def hset(self, name, key=None, value=None, mapping=None):
        target = self.hashes.setdefault(name, {})
        if key is not None:
            target[key] = value
        if mapping:
            target.update(mapping)

    def hgetall(self, name):
        return dict(self.hashes.get(name, {}))

    def delete(self, *names):
        for name in names:
            self.hashes.pop(name, None)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def repository():
    return FailSoftRepository(InMemoryStateStore())


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def engine(repository, rng):
    return AdaptiveRecommendationEngine(repository, EngineConfig(), rng=rng)


@pytest.fixture
def session_store():
    return SessionStore.from_url("sqlite://")


@pytest.fixture
def planner(engine, session_store):
    return SessionPlanner(engine, session_store)
