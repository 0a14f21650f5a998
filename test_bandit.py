"""Tests for the Thompson Sampling bandit."""

import numpy as np
import pytest

from models.contextual_bandit import ThompsonBandit
from services.storage import MODEL_NAMESPACE
from utils import ContextKey

CONTEXT = ContextKey.create('coding', 'mid')


@pytest.fixture
def bandit(repository, rng):
    return ThompsonBandit(repository, rng=rng)


def test_unseen_actions_start_from_prior(bandit):
    bandit.get_best_action(CONTEXT, [20, 25, 30])

    params = bandit.load_context(CONTEXT)
    assert sorted(params) == [20, 25, 30]
    for p in params.values():
        assert p.alpha == 1.0
        assert p.beta == 1.5
    assert bandit.get_total_observations(CONTEXT) == 0


def test_early_exploration_picks_from_candidates(bandit):
    actions = [10, 15, 20, 25, 30]
    picks = {bandit.get_best_action(CONTEXT, actions) for _ in range(30)}
    assert picks <= set(actions)
    assert len(picks) > 1


def test_empty_action_set_is_rejected(bandit):
    with pytest.raises(ValueError):
        bandit.get_best_action(CONTEXT, [])


def test_confident_reward_gets_extra_weight(bandit):
    bandit.update_model(CONTEXT, 30, 0.9)

    p = bandit.load_context(CONTEXT)[30]
    assert p.alpha == pytest.approx(1.0 + 0.9 * 1.5)
    assert p.beta == pytest.approx(1.5 + 0.1 * 1.5)


def test_moderate_reward_is_plain_bayesian_update(bandit):
    bandit.update_model(CONTEXT, 30, 0.5)

    p = bandit.load_context(CONTEXT)[30]
    assert p.alpha == pytest.approx(1.5)
    assert p.beta == pytest.approx(2.0)


@pytest.mark.parametrize('reward', [0, 0.0, float('nan'), None])
def test_no_signal_rewards_are_skipped(bandit, reward):
    bandit.update_model(CONTEXT, 30, reward)
    assert bandit.load_context(CONTEXT) == {}


def test_rejection_counts_as_full_failure(bandit):
    bandit.penalize_rejection(CONTEXT, 45)

    p = bandit.load_context(CONTEXT)[45]
    assert p.alpha == pytest.approx(1.0)
    assert p.beta == pytest.approx(2.5)


def test_proven_winner_dominates_sampling(bandit):
    for _ in range(10):
        bandit.update_model(CONTEXT, 30, 1.0)
        bandit.update_model(CONTEXT, 60, 0.1)

    picks = [bandit.get_best_action(CONTEXT, [30, 60]) for _ in range(20)]
    assert picks == [30] * 20


def test_best_proven_action(bandit):
    assert bandit.best_proven_action(CONTEXT) is None

    bandit.get_best_action(CONTEXT, [20, 90])  # prior-only actions are not proven
    assert bandit.best_proven_action(CONTEXT) is None

    bandit.update_model(CONTEXT, 25, 1.0)
    bandit.update_model(CONTEXT, 35, 0.5)
    assert bandit.best_proven_action(CONTEXT) == 25


def test_best_proven_action_prefers_shorter_on_ties(bandit):
    bandit.update_model(CONTEXT, 40, 1.0)
    bandit.update_model(CONTEXT, 30, 1.0)
    assert bandit.best_proven_action(CONTEXT) == 30


def test_observations_restricted_to_actions(bandit):
    bandit.update_model(CONTEXT, 30, 1.0)
    bandit.update_model(CONTEXT, 60, 0.5)

    assert bandit.get_total_observations(CONTEXT) == pytest.approx(2.5)
    assert bandit.get_total_observations(CONTEXT, [30, 35]) == pytest.approx(1.5)
    assert bandit.get_total_observations(CONTEXT, [10]) == 0


def test_state_is_stored_with_string_keys(bandit, repository):
    bandit.update_model(CONTEXT, 30, 1.0)

    raw = repository.get(MODEL_NAMESPACE, 'coding|mid')
    assert set(raw) == {'30'}
    assert raw['30']['alpha'] == pytest.approx(2.5)


def test_sampling_is_reproducible_with_seed(repository):
    first = ThompsonBandit(repository, rng=np.random.default_rng(5))
    second = ThompsonBandit(repository, rng=np.random.default_rng(5))
    assert [first.sample_beta(2, 3) for _ in range(5)] == [second.sample_beta(2, 3) for _ in range(5)]
