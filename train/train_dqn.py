"""
DQN Training for the Player Agent.

Trains on a single level with moves into known walls turned into waiting,
then scores the learned policy against the heuristic baseline using the
headless runner.
Requires: pip install -e .[rl]
"""

import argparse
import os
import sys
from typing import Dict

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

try:
    from stable_baselines3 import DQN
    from stable_baselines3.common.callbacks import BaseCallback
    from stable_baselines3.common.monitor import Monitor
except ImportError as e:
    print("Error: Training dependencies not installed.")
    print("Run: pip install -e .[rl]")
    print(f"Missing: {e}")
    sys.exit(1)

from sim.env import CrawlerEnv, CrawlerGymEnv, MaskedActionWrapper, DEFAULT_LEVEL_PATH
from sim.level import LevelLoadError, read_level_text
from sim.runner import run_n_episodes, heuristic_policy_wrapper, print_results
from sim.state import GameStatus
from train.evaluate import masked_q_policy

MODEL_NAME = "dqn_player_policy.zip"

DQN_CONFIG = {
    "learning_rate": 5e-4,
    "buffer_size": 20000,
    "learning_starts": 500,
    "batch_size": 32,
    "gamma": 0.95,
    "train_freq": 1,
    "target_update_interval": 500,
    "exploration_fraction": 0.2,
    "exploration_final_eps": 0.05,
}


def make_env(level_text: str, seed: int = None, max_steps: int = 200) -> Monitor:
    """CrawlerGymEnv -> MaskedActionWrapper -> Monitor."""
    if CrawlerGymEnv is None:
        raise RuntimeError("Gymnasium not available")

    env = CrawlerGymEnv(level_text=level_text, seed=seed, max_steps=max_steps)
    return Monitor(MaskedActionWrapper(env))


class EpisodeStatsCallback(BaseCallback):
    """Counts finished episodes, wins and kills and records them to the SB3 logger."""

    def __init__(self, verbose: int = 0):
        super().__init__(verbose)
        self.episodes = 0
        self.wins = 0
        self.deaths = 0
        self.kills = 0

    def _on_step(self) -> bool:
        for done, info in zip(self.locals["dones"], self.locals["infos"]):
            if not done:
                continue
            self.episodes += 1
            self.kills += info.get("kills", 0)
            if info.get("status") == GameStatus.ALL_ENEMIES_CLEARED.value:
                self.wins += 1
            elif info.get("status") == GameStatus.PLAYER_DEAD.value:
                self.deaths += 1

            self.logger.record("crawler/win_rate", self.wins / self.episodes)
            self.logger.record("crawler/death_rate", self.deaths / self.episodes)
            self.logger.record("crawler/kills_per_episode", self.kills / self.episodes)
        return True


def train(
    total_timesteps: int = 50000,
    seed: int = 42,
    level_path: str = None,
    save_dir: str = None,
    max_steps: int = 200,
    eval_episodes: int = 10,
    tensorboard_dir: str = None,
    verbose: int = 1,
) -> Dict:
    """
    Train a DQN player on one level and compare it with the heuristic.

    Args:
        total_timesteps: Environment turns to train for
        seed: Seed for the model and the training level
        level_path: Level file (defaults to the bundled level1.txt)
        save_dir: Where dqn_player_policy.zip is written
        max_steps: Turns before an episode is truncated
        eval_episodes: Episodes per policy in the final comparison (0 skips it)
        tensorboard_dir: Enable tensorboard logging into this directory
        verbose: SB3 verbosity

    Returns:
        Summary dict with the model path, training counts and, when
        evaluated, runner stats for the trained and heuristic policies.
    """
    level_path = level_path or DEFAULT_LEVEL_PATH
    level_text = read_level_text(level_path)

    if save_dir is None:
        save_dir = os.path.join(project_root, "data", "ai", "models")
    os.makedirs(save_dir, exist_ok=True)

    env = make_env(level_text, seed=seed, max_steps=max_steps)
    masked = env.env

    config = dict(DQN_CONFIG)
    config["learning_starts"] = min(config["learning_starts"], max(1, total_timesteps // 4))

    model = DQN(
        "MlpPolicy",
        env,
        seed=seed,
        verbose=verbose,
        tensorboard_log=tensorboard_dir,
        **config,
    )

    stats = EpisodeStatsCallback()
    print(f"Training on {level_path} for {total_timesteps} turns (seed {seed})")
    try:
        model.learn(total_timesteps=total_timesteps, callback=stats)
    except KeyboardInterrupt:
        print("\nTraining interrupted, saving the current model.")

    model_path = os.path.join(save_dir, MODEL_NAME)
    model.save(model_path)
    env.close()
    print(f"Model saved to: {model_path}")

    summary = {
        "model_path": model_path,
        "training_episodes": stats.episodes,
        "training_wins": stats.wins,
        "training_deaths": stats.deaths,
        "masked_moves": masked.remapped,
    }

    if eval_episodes > 0:
        eval_env = CrawlerEnv(level_text=level_text, max_steps=max_steps)
        summary["trained"] = run_n_episodes(
            eval_env, masked_q_policy(model), n_episodes=eval_episodes, base_seed=seed + 1000
        )
        summary["heuristic"] = run_n_episodes(
            eval_env, heuristic_policy_wrapper, n_episodes=eval_episodes, base_seed=seed + 1000
        )
        print_results("Trained DQN", summary["trained"])
        print_results("Heuristic baseline", summary["heuristic"])

    return summary


def parse_args(argv):
    parser = argparse.ArgumentParser(description="Train a DQN player policy on one level")
    parser.add_argument("--timesteps", type=int, default=50000, help="Total training turns")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--level", type=str, default=None, help="Level file to train on")
    parser.add_argument("--max-steps", type=int, default=200, help="Turns before truncation")
    parser.add_argument("--eval-episodes", type=int, default=10, help="Episodes per policy after training")
    parser.add_argument("--save-dir", type=str, default=None, help="Model output directory")
    parser.add_argument("--tensorboard", type=str, default=None, help="Tensorboard log directory")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    try:
        train(
            total_timesteps=args.timesteps,
            seed=args.seed,
            level_path=args.level,
            save_dir=args.save_dir,
            max_steps=args.max_steps,
            eval_episodes=args.eval_episodes,
            tensorboard_dir=args.tensorboard,
        )
    except LevelLoadError as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
