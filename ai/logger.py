"""
JSONL Rollout Logger.

Logs turn-by-turn transitions for headless episodes and interactive play.
Write failures only print a warning; they never stop a run.
"""

import json
import os
from datetime import datetime
from typing import Dict, Any
import numpy as np


def convert_numpy(obj: Any) -> Any:
    """Convert numpy types to Python native types for JSON serialization."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, dict):
        return {k: convert_numpy(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_numpy(v) for v in obj]
    return obj


class RolloutLogger:
    """
    Logger for rollouts in JSONL format.
    """

    def __init__(self, log_dir: str = None, enabled: bool = True, include_obs: bool = False):
        """
        Initialize rollout logger.

        Args:
            log_dir: Directory to write logs. Defaults to data/ai/rollout_logs/
            enabled: Whether logging is active
            include_obs: Also write observation vectors (large)
        """
        self.enabled = enabled
        self.include_obs = include_obs

        if log_dir is None:
            base_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
            log_dir = os.path.join(base_path, "data", "ai", "rollout_logs")

        self.log_dir = log_dir
        self.current_file = None
        self.current_episode_id = None
        self.step_idx = 0
        self.seed = None

        if self.enabled:
            os.makedirs(self.log_dir, exist_ok=True)

    def start_episode(self, seed: int = None, episode_id: str = None):
        """Start a new episode."""
        if not self.enabled:
            return

        self.seed = seed
        self.step_idx = 0

        if episode_id is None:
            episode_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.current_episode_id = episode_id

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"rollout_{timestamp}.jsonl"
        self.current_file = os.path.join(self.log_dir, filename)

    def _write(self, entry: Dict):
        try:
            with open(self.current_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
        except (OSError, TypeError, ValueError) as e:
            print(f"Warning: Failed to write log entry: {e}")

    def log_step(
        self,
        obs: np.ndarray,
        action_index: int,
        action_dict: Dict,
        reward: float,
        reward_components: Dict,
        done: bool,
        truncated: bool,
        info: Dict,
        next_obs: np.ndarray = None
    ):
        """Log a single environment step."""
        if not self.enabled or self.current_file is None:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "seed": convert_numpy(self.seed),
            "episode_id": self.current_episode_id,
            "step_idx": self.step_idx,
            "action_index": int(action_index),
            "action_dict": convert_numpy(action_dict),
            "reward": float(reward),
            "reward_components": convert_numpy(reward_components),
            "done": bool(done),
            "truncated": bool(truncated),
            "info": {
                "status": info.get("status"),
                "hp": convert_numpy(info.get("hp")),
                "kills": convert_numpy(info.get("kills")),
                "turn": convert_numpy(info.get("turn")),
            },
        }

        if self.include_obs:
            entry["obs"] = convert_numpy(obs)
            if next_obs is not None:
                entry["next_obs"] = convert_numpy(next_obs)

        self._write(entry)
        self.step_idx += 1

    def log_turn(self, turn: int, command: str, frame: Dict, messages: list):
        """Log one interactive turn (play mode)."""
        if not self.enabled:
            return

        if self.current_file is None:
            self.start_episode()

        self._write({
            "timestamp": datetime.now().isoformat(),
            "type": "turn",
            "episode_id": self.current_episode_id,
            "turn": int(turn),
            "command": command,
            "hp": frame.get("hp"),
            "kills": frame.get("kills"),
            "player_pos": frame.get("player", {}).get("pos"),
            "messages": list(messages),
        })

    def end_episode(self, final_info: Dict = None):
        """End current episode."""
        if not self.enabled:
            return

        if final_info and self.current_file:
            self._write({
                "timestamp": datetime.now().isoformat(),
                "episode_id": self.current_episode_id,
                "type": "episode_end",
                "total_steps": self.step_idx,
                "final_info": convert_numpy(final_info),
            })

        self.current_episode_id = None
        self.step_idx = 0
