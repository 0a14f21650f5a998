"""
Demo script for the Adaptive Focus Recommender

This script simulates a user working through focus sessions and shows how
the engine moves from heuristics to bootstrap mirroring to Thompson
Sampling, how zones shift, and how burnout protection kicks in.
"""

import json
import random
from datetime import datetime, timedelta
from typing import Any, Dict

import numpy as np

from categories import COMPLETED, SKIPPED_FOCUS
from config.config import EngineConfig
from services.recommendation_engine import AdaptiveRecommendationEngine
from services.session_planner import SessionPlanner
from services.session_store import SessionStore
from services.storage import FailSoftRepository, InMemoryStateStore
from utils import configure_logging


def create_sample_users() -> Dict[str, Dict[str, Any]]:
    """Create sample user profiles for demonstration."""
    return {
        "deep_worker": {
            "task": "coding",
            "energy": "high",
            "comfortable_minutes": 50,
            "completion_probability": 0.9,
        },
        "easily_distracted": {
            "task": "reading",
            "energy": "low",
            "comfortable_minutes": 15,
            "completion_probability": 0.6,
        },
    }


def create_planner(seed: int = 7) -> SessionPlanner:
    engine = AdaptiveRecommendationEngine(
        FailSoftRepository(InMemoryStateStore()),
        EngineConfig(),
        rng=np.random.default_rng(seed)
    )
    return SessionPlanner(engine, SessionStore.from_url("sqlite://"))


def simulate_user_session(planner: SessionPlanner, profile: Dict[str, Any], now: datetime):
    """Plan one session for a profile and feed back a simulated outcome."""
    plan = planner.plan_session(profile["energy"], profile["task"], now=now)

    # Users mostly take the recommendation, otherwise they pick what they like
    accepted = random.random() < 0.7
    selected = plan.focus_minutes if accepted else profile["comfortable_minutes"]
    completed = selected <= profile["comfortable_minutes"] + 5 and random.random() < profile["completion_probability"]
    focused = selected if completed else max(2, min(selected, profile["comfortable_minutes"]) * random.uniform(0.4, 0.9))

    planner.complete_session(
        COMPLETED if completed else SKIPPED_FOCUS,
        profile["task"], profile["energy"],
        recommended_focus=plan.focus_minutes,
        recommended_break=plan.break_minutes,
        accepted=accepted,
        selected_focus_seconds=selected * 60,
        selected_break_seconds=plan.break_minutes * 60,
        focused_seconds=focused * 60,
        now=now + timedelta(minutes=focused)
    )
    return plan, selected, focused, completed


def demonstrate_learning_progression(user_id: str, profile: Dict[str, Any], sessions: int = 15):
    """Demonstrate how recommendations adapt over time."""
    print("\n" + "=" * 60)
    print(f"DEMONSTRATING LEARNING PROGRESSION: {user_id}")
    print("=" * 60)
    print(f"Profile: {profile['task']} at {profile['energy']} energy, "
          f"comfortable for ~{profile['comfortable_minutes']}m")

    planner = create_planner()
    # One session a day keeps burnout protection out of the picture
    start = datetime(2024, 1, 1, 9, 0)

    for session_num in range(1, sessions + 1):
        now = start + timedelta(days=session_num)
        plan, selected, focused, completed = simulate_user_session(planner, profile, now)
        outcome = "completed" if completed else "skipped"
        print(f"Session {session_num:2d}: recommended {plan.focus_minutes:3d}m ({plan.focus_source:9s}) "
              f"break {plan.break_minutes:2d}m | selected {selected:3d}m, focused {focused:5.1f}m -> {outcome}")

    print("\n--- Learned Model Summary ---")
    for key, stats in planner.engine.get_model_statistics().items():
        print(f"{key}: zone={stats['zone']}, avg capacity={stats['average_capacity']:.1f}m, "
              f"completion={stats['completion_rate']:.0%}, trend={stats['trend']}")
        top = sorted(stats['actions'], key=lambda a: a['mean'], reverse=True)[:3]
        for action in top:
            print(f"    {action['action']:3d}m  mean={action['mean']:.3f}  obs={action['observations']:.1f}")

    return planner


def demonstrate_burnout_protection():
    """Show recommendations shrinking after a long day of focus."""
    print("\n" + "=" * 60)
    print("DEMONSTRATING BURNOUT PROTECTION")
    print("=" * 60)

    planner = create_planner()
    now = datetime(2024, 1, 1, 9, 0)
    for _ in range(6):
        plan = planner.plan_session("mid", "writing", now=now)
        planner.complete_session(
            COMPLETED, "writing", "mid", plan.focus_minutes, plan.break_minutes, True,
            selected_focus_seconds=plan.focus_minutes * 60,
            selected_break_seconds=plan.break_minutes * 60,
            focused_seconds=plan.focus_minutes * 60,
            now=now + timedelta(minutes=plan.focus_minutes)
        )
        now += timedelta(minutes=plan.focus_minutes + 2)
        print(f"Planned {plan.focus_minutes:3d}m ({plan.focus_source}), "
              f"focused today: {planner.session_store.today_total_minutes(now):.0f}m")


def main():
    """Main demo function."""
    configure_logging("WARNING")
    random.seed(42)

    print("Adaptive Focus Recommender - Thompson Sampling Demo")
    print("=" * 60)

    users = create_sample_users()
    print(f"Loaded {len(users)} sample users")

    planners = {
        user_id: demonstrate_learning_progression(user_id, profile)
        for user_id, profile in users.items()
    }

    demonstrate_burnout_protection()

    # Save the learned state
    state = planners["deep_worker"].engine.export_state()
    with open("demo_engine_state.json", "w") as f:
        json.dump(state, f, indent=2)
    print("\nEngine state saved to demo_engine_state.json")

    print("\n" + "=" * 60)
    print("DEMO COMPLETED")
    print("=" * 60)


if __name__ == "__main__":
    main()
