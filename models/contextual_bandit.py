"""
Contextual Bandit Model for Focus Duration Recommendations

Implements Thompson Sampling over Beta-distributed beliefs, one belief per
(context, duration) pair. Each context is a (task type, energy level) pair;
each action is a candidate session length in minutes.

Unexplored durations start from a pessimistic prior so a lucky sample from
an untried arm cannot beat a proven winner.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from pydantic import ValidationError

from config.config import BanditConfig
from models.state import ActionTable, ModelParameters
from services.storage import MODEL_NAMESPACE, StateRepository
from utils import ContextKey

logger = logging.getLogger(__name__)


class ThompsonBandit:
    """
    Thompson Sampling bandit with per-context Beta beliefs.

    This implementation handles:
    - Lazy initialisation of unseen actions with the prior
    - Pure random exploration while a context has almost no evidence
    - Bayesian reward updates with extra trust for confident outcomes
    - Synthetic penalties for declined recommendations
    """

    def __init__(self, repository: StateRepository, config: Optional[BanditConfig] = None,
                 rng: Optional[np.random.Generator] = None):
        self.repository = repository
        self.config = config or BanditConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)

        logger.info(f"Initialised Thompson bandit with config: {self.config}")

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def _prior(self) -> ModelParameters:
        return ModelParameters(alpha=self.config.prior_alpha, beta=self.config.prior_beta)

    def load_context(self, context: ContextKey) -> Dict[int, ModelParameters]:
        """Load all action parameters for a context."""
        raw = self.repository.get(MODEL_NAMESPACE, context.storage_key)
        if not raw:
            return {}
        try:
            return ActionTable(actions=raw).actions
        except (ValidationError, ValueError) as e:
            logger.warning(f"Discarding invalid model data for {context.storage_key}: {e}")
            return {}

    def save_context(self, context: ContextKey, params: Dict[int, ModelParameters]):
        self.repository.put(MODEL_NAMESPACE, context.storage_key, ActionTable(actions=params).to_storage())

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def sample_beta(self, alpha: float, beta: float) -> float:
        """Draw one sample from Beta(alpha, beta)."""
        return float(self.rng.beta(alpha, beta))

    def observations(self, params: ModelParameters) -> float:
        """Evidence carried by a belief, excluding the prior pseudo-counts."""
        return params.alpha + params.beta - self.config.prior_alpha - self.config.prior_beta

    def get_total_observations(self, context: ContextKey,
                               actions: Optional[Sequence[int]] = None,
                               params: Optional[Dict[int, ModelParameters]] = None) -> float:
        """
        Sum the evidence for a context.

        Args:
            context: Context to inspect
            actions: Restrict the sum to these actions (all stored actions when None)
            params: Pre-loaded parameters, to avoid a second read
        """
        if params is None:
            params = self.load_context(context)
        keys = params.keys() if actions is None else [a for a in actions if a in params]
        return sum(self.observations(params[a]) for a in keys)

    def get_best_action(self, context: ContextKey, actions: Sequence[int]) -> int:
        """
        Pick an action with Thompson Sampling.

        Args:
            context: Context to recommend for
            actions: Candidate durations (must not be empty)

        Returns:
            The selected duration in minutes
        """
        if not actions:
            raise ValueError("Cannot select from an empty action set")

        params = self.load_context(context)
        missing = [a for a in actions if a not in params]
        for action in missing:
            params[action] = self._prior()
        if missing:
            self.save_context(context, params)

        total_tries = self.get_total_observations(context, actions, params)

        # Early exploration: ignore the priors and diversify the first data points
        if total_tries < self.config.early_exploration_threshold:
            choice = int(actions[int(self.rng.integers(len(actions)))])
            logger.info(
                f"Early exploration for {context.storage_key}: randomly selected {choice} "
                f"(total tries: {total_tries:.1f})"
            )
            return choice

        samples = [
            (action, self.sample_beta(params[action].alpha, params[action].beta))
            for action in actions
        ]
        samples.sort(key=lambda x: x[1], reverse=True)

        for action, value in samples[:3]:
            p = params[action]
            logger.debug(
                f"  {action}min: sample={value:.3f}, mean={p.mean:.3f}, obs={self.observations(p):.1f}"
            )

        return int(samples[0][0])

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def update_model(self, context: ContextKey, action: int, reward: float):
        """
        Update an action's belief with a reward in [0, 1].

        A reward of exactly 0 or NaN carries no signal and is skipped.
        Negative rewards count as a full failure.
        """
        if reward is None or math.isnan(reward) or reward == 0:
            logger.debug(f"Skipping update: invalid reward {reward}")
            return

        params = self.load_context(context)
        current = params.get(int(action), self._prior())

        success_weight = max(0.0, min(1.0, reward))
        failure_weight = 1.0 - success_weight
        multiplier = self.config.trust_multiplier if reward > self.config.confident_reward else 1.0

        updated = ModelParameters(
            alpha=current.alpha + success_weight * multiplier,
            beta=current.beta + failure_weight * multiplier
        )
        params[int(action)] = updated
        self.save_context(context, params)

        logger.info(
            f"Model update: context={context.storage_key}, action={action}min, reward={reward:.3f}, "
            f"alpha {current.alpha:.2f} -> {updated.alpha:.2f}, beta {current.beta:.2f} -> {updated.beta:.2f}, "
            f"mean={updated.mean:.3f}"
        )

    def penalize_rejection(self, context: ContextKey, action: int):
        """Record that the user explicitly declined a recommendation."""
        self.update_model(context, action, self.config.rejection_reward)
        logger.info(f"Penalized rejected recommendation: {action} min")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def best_proven_action(self, context: ContextKey) -> Optional[int]:
        """
        Highest-mean action among those with evidence.

        Ties break toward the shorter duration. Returns None without evidence.
        """
        params = self.load_context(context)
        proven = [(a, p) for a, p in params.items() if self.observations(p) > 0]
        if not proven:
            return None
        return max(proven, key=lambda item: (item[1].mean, -item[0]))[0]

    def get_context_statistics(self, context: ContextKey) -> List[Dict[str, Any]]:
        """Per-action alpha, beta, mean and evidence, sorted by duration."""
        params = self.load_context(context)
        return [
            {
                'action': action,
                'alpha': p.alpha,
                'beta': p.beta,
                'mean': p.mean,
                'observations': self.observations(p),
            }
            for action, p in sorted(params.items())
        ]
