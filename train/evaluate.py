"""
Evaluation Script for Player Policies.

Compares a trained RL policy against the heuristic and random baselines.
"""

import os
import sys
import numpy as np
from typing import Dict, Callable

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from sim.env import CrawlerEnv, DEFAULT_LEVEL_PATH
from sim.runner import run_n_episodes, heuristic_policy_wrapper, random_policy
from sim.state import Frame
from ai.featurize import featurize_frame
from ai.policy_heuristic import valid_moves
from ai.schema import ACTION_WAIT


def load_trained_policy(model_path: str = None):
    """
    Load trained DQN policy.

    Returns a policy function compatible with run_episode.
    """
    if model_path is None:
        model_path = os.path.join(project_root, "data", "ai", "models", "dqn_player_policy.zip")

    if not os.path.exists(model_path):
        print(f"Warning: Model not found at {model_path}")
        return None

    try:
        from stable_baselines3 import DQN
    except ImportError:
        print("Warning: stable-baselines3 not installed, cannot load trained model")
        return None

    try:
        model = DQN.load(model_path)
    except (OSError, ValueError) as e:
        print(f"Warning: Failed to load model: {e}")
        return None

    return masked_q_policy(model)


def masked_q_policy(model) -> Callable[[Frame, np.random.Generator], int]:
    """Greedy policy over the model's q-values, restricted to valid moves and waiting."""

    def trained_policy(frame: Frame, rng: np.random.Generator) -> int:
        obs = featurize_frame(frame)

        obs_tensor = model.policy.obs_to_tensor(obs.reshape(1, -1))[0]
        q_values = model.policy.q_net(obs_tensor).detach().cpu().numpy().flatten()

        allowed = set(valid_moves(frame)) | {ACTION_WAIT}
        for a in range(len(q_values)):
            if a not in allowed:
                q_values[a] = -1e9

        return int(np.argmax(q_values))

    return trained_policy


def evaluate_policies(
    policies: Dict[str, Callable],
    n_episodes: int = 50,
    seed: int = 42,
    level_path: str = None,
    max_steps: int = 500,
    verbose: bool = False
) -> Dict[str, Dict]:
    """
    Evaluate multiple policies.

    Args:
        policies: Dict of policy_name -> policy_fn
        n_episodes: Episodes per policy
        seed: Base random seed
        level_path: Level file to play
        max_steps: Turns before truncation
        verbose: Print per-episode details

    Returns:
        Dict of policy_name -> results
    """
    results = {}

    for name, policy_fn in policies.items():
        print(f"\nEvaluating: {name}")
        print("-" * 40)

        env = CrawlerEnv(
            level_path=level_path or DEFAULT_LEVEL_PATH,
            seed=seed,
            max_steps=max_steps,
        )

        policy_results = run_n_episodes(
            env=env,
            policy_fn=policy_fn,
            n_episodes=n_episodes,
            base_seed=seed,
            verbose=verbose
        )

        results[name] = policy_results

        print(f"  Average Reward: {policy_results['avg_reward']:.2f} ± {policy_results['std_reward']:.2f}")
        print(f"  Average Steps: {policy_results['avg_steps']:.1f}")
        print(f"  Average Kills: {policy_results['avg_kills']:.2f}")
        print(f"  Average Damage Taken: {policy_results['avg_damage_taken']:.1f}")
        print(f"  Player Win Rate: {policy_results['player_win_rate']*100:.1f}%")

    return results


def print_comparison(results: Dict[str, Dict]):
    """Print comparison table."""
    print("\n" + "=" * 80)
    print("POLICY COMPARISON")
    print("=" * 80)

    print(f"{'Policy':<20} {'Reward':>14} {'Win Rate':>10} {'Kills':>8} {'Steps':>10}")
    print("-" * 80)

    for name, r in results.items():
        reward = f"{r['avg_reward']:.2f}±{r['std_reward']:.2f}"
        win_rate = f"{r['player_win_rate']*100:.1f}%"
        kills = f"{r['avg_kills']:.2f}"
        steps = f"{r['avg_steps']:.1f}"

        print(f"{name:<20} {reward:>14} {win_rate:>10} {kills:>8} {steps:>10}")

    print("=" * 80)

    best_name = max(results.keys(), key=lambda k: results[k]['avg_reward'])
    print(f"\nBest policy by reward: {best_name}")

    best_win_name = max(results.keys(), key=lambda k: results[k]['player_win_rate'])
    print(f"Best policy by win rate: {best_win_name}")


def main():
    """Main evaluation entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Evaluate player policies")
    parser.add_argument("--episodes", type=int, default=50, help="Episodes per policy")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--level", type=str, default=None, help="Level file")
    parser.add_argument("--model", type=str, default=None, help="Path to trained model")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    args = parser.parse_args()

    print("=" * 60)
    print("Player Policy Evaluation")
    print("=" * 60)

    policies = {
        "Heuristic": heuristic_policy_wrapper,
        "Random": random_policy,
    }

    trained = load_trained_policy(args.model)
    if trained is not None:
        policies["Trained DQN"] = trained

    results = evaluate_policies(
        policies=policies,
        n_episodes=args.episodes,
        seed=args.seed,
        level_path=args.level,
        verbose=args.verbose
    )

    print_comparison(results)

    print("\nEvaluation complete!")


if __name__ == "__main__":
    main()
