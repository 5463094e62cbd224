"""
Headless Episode Runner.

Run dungeon episodes without a terminal for evaluation and data collection.
"""

import argparse
import sys
import time
from typing import Callable, Dict

import numpy as np

from sim.config import env_level, resolve_seed
from sim.env import CrawlerEnv, DEFAULT_LEVEL_PATH
from sim.level import LevelLoadError
from sim.state import Frame
from ai.policy_heuristic import heuristic_select_action, valid_moves
from ai.logger import RolloutLogger
from ai.schema import ACTION_WAIT, describe_action

DEFAULT_SEED = 42


def run_episode(
    env: CrawlerEnv,
    policy_fn: Callable[[Frame, np.random.Generator], int],
    seed: int = None,
    logger: RolloutLogger = None,
    verbose: bool = False
) -> Dict:
    """
    Run a single episode.

    Args:
        env: Crawler environment
        policy_fn: Function that takes (frame, rng) and returns action_index
        seed: Random seed
        logger: Optional rollout logger
        verbose: Print step details

    Returns:
        Episode statistics dict
    """
    obs, info = env.reset(seed=seed)
    # Policies get their own stream so they never shift the game's dice
    policy_rng = np.random.default_rng(None if seed is None else seed + 1)

    if logger:
        logger.start_episode(seed=seed)

    total_reward = 0.0
    steps = 0
    damage_dealt = 0
    damage_taken = 0
    potions = 0

    done = env.game.status.is_terminal
    truncated = False

    while not done and not truncated:
        action_idx = policy_fn(env.frame, policy_rng)

        if verbose:
            print(f"Step {steps}: {describe_action(action_idx)['command']}")

        next_obs, reward, done, truncated, step_info = env.step(action_idx)

        if logger:
            logger.log_step(
                obs=obs,
                action_index=action_idx,
                action_dict=describe_action(action_idx),
                reward=reward,
                reward_components=step_info.get("reward_components", {}),
                done=done,
                truncated=truncated,
                info=step_info,
                next_obs=next_obs
            )

        total_reward += reward
        steps += 1

        rc = step_info.get("reward_components", {})
        damage_dealt += rc.get("damage_dealt", 0)
        damage_taken += rc.get("damage_taken", 0)
        potions += rc.get("potions", 0)

        obs = next_obs

        if verbose and (done or truncated):
            print(f"Episode ended: done={done}, truncated={truncated}")
            print(env.render_text())

    winner = env.get_winner()

    if logger:
        logger.end_episode({
            "total_reward": total_reward,
            "steps": steps,
            "winner": winner,
        })

    return {
        "total_reward": total_reward,
        "steps": steps,
        "kills": env.game.state.kills,
        "damage_dealt": damage_dealt,
        "damage_taken": damage_taken,
        "potions": potions,
        "final_hp": env.game.state.player.hp,
        "winner": winner,
        "done": done,
        "truncated": truncated,
    }


def run_n_episodes(
    env: CrawlerEnv,
    policy_fn: Callable,
    n_episodes: int = 10,
    base_seed: int = None,
    logger: RolloutLogger = None,
    verbose: bool = False
) -> Dict:
    """
    Run multiple episodes and aggregate statistics.

    Returns:
        Aggregated statistics dict
    """
    all_results = []

    if n_episodes <= 0:
        return empty_results()

    for i in range(n_episodes):
        seed = base_seed + i if base_seed is not None else None

        if verbose:
            print(f"\n=== Episode {i+1}/{n_episodes} (seed={seed}) ===")

        result = run_episode(
            env=env,
            policy_fn=policy_fn,
            seed=seed,
            logger=logger,
            verbose=verbose
        )
        all_results.append(result)

    total_rewards = [r["total_reward"] for r in all_results]
    steps_list = [r["steps"] for r in all_results]
    kills_list = [r["kills"] for r in all_results]
    damage_dealt_list = [r["damage_dealt"] for r in all_results]
    damage_taken_list = [r["damage_taken"] for r in all_results]

    player_wins = sum(1 for r in all_results if r["winner"] == "player")
    enemy_wins = sum(1 for r in all_results if r["winner"] == "enemies")

    return {
        "n_episodes": n_episodes,
        "avg_reward": float(np.mean(total_rewards)),
        "std_reward": float(np.std(total_rewards)),
        "avg_steps": float(np.mean(steps_list)),
        "avg_kills": float(np.mean(kills_list)),
        "avg_damage_dealt": float(np.mean(damage_dealt_list)),
        "avg_damage_taken": float(np.mean(damage_taken_list)),
        "player_win_rate": player_wins / n_episodes,
        "enemy_win_rate": enemy_wins / n_episodes,
        "all_results": all_results,
    }


def empty_results() -> Dict:
    """Aggregate stats for a batch that ran no episodes."""
    return {
        "n_episodes": 0,
        "avg_reward": 0.0,
        "std_reward": 0.0,
        "avg_steps": 0.0,
        "avg_kills": 0.0,
        "avg_damage_dealt": 0.0,
        "avg_damage_taken": 0.0,
        "player_win_rate": 0.0,
        "enemy_win_rate": 0.0,
        "all_results": [],
    }


def heuristic_policy_wrapper(frame: Frame, rng: np.random.Generator) -> int:
    """Wrapper for heuristic policy that matches the policy_fn signature."""
    return heuristic_select_action(frame, rng)


def random_policy(frame: Frame, rng: np.random.Generator) -> int:
    """Random policy that selects uniformly from non-wall moves."""
    moves = valid_moves(frame)
    if not moves:
        return ACTION_WAIT
    return int(rng.choice(moves))


def print_results(title: str, results: Dict, elapsed: float = None):
    timing = f" ({elapsed:.2f}s)" if elapsed is not None else ""
    print(f"\n{title}{timing}:")
    print(f"  Average Reward: {results['avg_reward']:.2f} ± {results['std_reward']:.2f}")
    print(f"  Average Steps: {results['avg_steps']:.1f}")
    print(f"  Average Kills: {results['avg_kills']:.2f}")
    print(f"  Average Damage Dealt: {results['avg_damage_dealt']:.1f}")
    print(f"  Average Damage Taken: {results['avg_damage_taken']:.1f}")
    print(f"  Player Win Rate: {results['player_win_rate']*100:.1f}%")
    print(f"  Enemy Win Rate: {results['enemy_win_rate']*100:.1f}%")


def parse_args(argv):
    parser = argparse.ArgumentParser(description="Run headless dungeon episodes")
    parser.add_argument(
        "--level",
        default=env_level(DEFAULT_LEVEL_PATH),
        help="Level file (default: env CRAWLER_LEVEL or bundled level1.txt)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Base random seed (default: env CRAWLER_SEED or 42)",
    )
    parser.add_argument("--episodes", type=int, default=10, help="Episodes per policy")
    parser.add_argument("--max-steps", type=int, default=500, help="Turns before truncation")
    parser.add_argument("--log-dir", default=None, help="Write JSONL rollouts to this directory")
    parser.add_argument("--verbose", action="store_true", help="Print every step")
    args = parser.parse_args(argv)

    args.seed = resolve_seed(parser, args.seed, default=DEFAULT_SEED)
    return args


def main(argv=None) -> int:
    """Compare the heuristic and random policies on one level."""
    args = parse_args(sys.argv[1:] if argv is None else argv)

    print("=" * 60)
    print("Dungeon Crawler Runner")
    print("=" * 60)

    try:
        env = CrawlerEnv(level_path=args.level, max_steps=args.max_steps)
    except LevelLoadError as e:
        print(f"Error: {e}")
        return 1

    logger = RolloutLogger(log_dir=args.log_dir, enabled=True) if args.log_dir else None

    print(f"\nRunning {args.episodes} episodes with heuristic policy...")
    start_time = time.time()
    results = run_n_episodes(
        env=env,
        policy_fn=heuristic_policy_wrapper,
        n_episodes=args.episodes,
        base_seed=args.seed,
        logger=logger,
        verbose=args.verbose
    )
    print_results("Heuristic Policy Results", results, time.time() - start_time)

    print("\n" + "=" * 60)
    print(f"Running {args.episodes} episodes with random policy for comparison...")
    random_results = run_n_episodes(
        env=env,
        policy_fn=random_policy,
        n_episodes=args.episodes,
        base_seed=args.seed,
        verbose=False
    )
    print_results("Random Policy Results", random_results)

    print("\n" + "=" * 60)
    print("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
