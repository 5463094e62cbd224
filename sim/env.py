"""
Gym-like Crawler Environment.

Provides a standard RL interface for training a player agent. Each step is
one full game turn: the player's action followed by every enemy's.
"""

import numpy as np
from typing import Dict, Tuple, Optional
import os

from sim.engine import Game
from sim.level import read_level_text
from sim.state import GameStatus, Frame
from ai.schema import (
    ACTION_WAIT, ACTION_VECTORS,
    get_observation_size, get_action_size, action_index_to_command,
)
from ai.featurize import featurize_frame


DEFAULT_LEVEL_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "data", "levels", "level1.txt",
)

# Reward shaping
REWARD_PER_DAMAGE_DEALT = 0.1
REWARD_PER_DAMAGE_TAKEN = -0.1
REWARD_PER_KILL = 5.0
REWARD_PER_POTION = 1.0
STEP_PENALTY = -0.05
WIN_BONUS = 10.0
DEATH_PENALTY = -10.0


class CrawlerEnv:
    """
    Gym-like environment for one dungeon level.

    The level text is read once and re-parsed on every reset so each episode
    gets fresh enemies drawing from the episode's seed.
    """

    def __init__(
        self,
        level_path: str = None,
        level_text: str = None,
        seed: int = None,
        max_steps: int = 500,
    ):
        """
        Initialize crawler environment.

        Args:
            level_path: Level file (defaults to the bundled level1.txt)
            level_text: Level contents; takes precedence over level_path
            seed: Random seed for reproducibility
            max_steps: Maximum steps before truncation
        """
        if level_text is None:
            level_text = read_level_text(level_path or DEFAULT_LEVEL_PATH)

        self.level_text = level_text
        self.seed_value = seed
        self.max_steps = max_steps

        self.game: Optional[Game] = None
        self.frame: Optional[Frame] = None
        self.step_count: int = 0

        self.observation_size = get_observation_size()
        self.action_size = get_action_size()

    def reset(self, seed: int = None) -> Tuple[np.ndarray, Dict]:
        """
        Reset environment to initial state.

        Returns:
            (observation, info)
        """
        if seed is not None:
            self.seed_value = seed

        self.game = Game(seed=self.seed_value)
        self.game.load_text(self.level_text)
        self.step_count = 0

        self.frame = self.game.frame()
        self.game.check_status()

        return self._get_observation(), self._get_info()

    def step(self, action_index: int) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        """
        Execute one turn.

        Returns:
            (observation, reward, done, truncated, info)
        """
        if self.game is None:
            raise RuntimeError("Environment not reset")

        if self.game.status.is_terminal:
            raise RuntimeError("Episode is over, call reset()")

        self.step_count += 1
        state = self.game.state
        kills_before = state.kills

        result = self.game.step(action_index_to_command(int(action_index)))

        reward_components = {
            "damage_dealt": state.damage_dealt,
            "damage_taken": state.damage_taken,
            "kills": state.kills - kills_before,
            "potions": state.potions_used,
            "step_penalty": STEP_PENALTY,
        }

        self.frame = self.game.frame()
        status = self.game.check_status()
        done = status.is_terminal

        reward = self._calculate_reward(reward_components, status)
        truncated = not done and self.step_count >= self.max_steps

        info = self._get_info()
        info["reward_components"] = reward_components
        info["action"] = result["action"]

        return self._get_observation(), reward, done, truncated, info

    def _calculate_reward(self, reward_components: Dict, status: GameStatus) -> float:
        """Calculate total reward from components."""
        reward = 0.0
        reward += reward_components.get("damage_dealt", 0) * REWARD_PER_DAMAGE_DEALT
        reward += reward_components.get("damage_taken", 0) * REWARD_PER_DAMAGE_TAKEN
        reward += reward_components.get("kills", 0) * REWARD_PER_KILL
        reward += reward_components.get("potions", 0) * REWARD_PER_POTION
        reward += reward_components.get("step_penalty", STEP_PENALTY)

        if status is GameStatus.ALL_ENEMIES_CLEARED:
            reward += WIN_BONUS
        elif status is GameStatus.PLAYER_DEAD:
            reward += DEATH_PENALTY

        return reward

    def _get_observation(self) -> np.ndarray:
        """Get current observation vector."""
        if self.frame is None:
            return np.zeros(self.observation_size, dtype=np.float32)
        return featurize_frame(self.frame)

    def action_mask(self) -> np.ndarray:
        """Directions into known walls or off the map are masked; waiting never is."""
        mask = np.ones(self.action_size, dtype=bool)
        if self.frame is None:
            return mask

        walls = {w.pos.as_tuple() for w in self.frame.walls}
        px, py = self.frame.player.pos.x, self.frame.player.pos.y
        for a in range(ACTION_WAIT):
            dx, dy = ACTION_VECTORS[a]
            nx, ny = px + dx, py + dy
            if (nx, ny) in walls or not (0 <= nx < self.frame.width and 0 <= ny < self.frame.height):
                mask[a] = False
        return mask

    def _get_info(self) -> Dict:
        """Get info dict including action mask."""
        if self.game is None or self.game.state is None:
            return {"action_mask": np.ones(self.action_size, dtype=bool)}

        state = self.game.state
        return {
            "action_mask": self.action_mask(),
            "status": state.status.value,
            "hp": state.player.hp,
            "kills": state.kills,
            "turn": state.turn,
            "enemies_left": len(state.level.enemies),
            "step_count": self.step_count,
        }

    def get_winner(self) -> Optional[str]:
        """'player', 'enemies', or None while running or after a quit."""
        if self.game is None or self.game.state is None:
            return None
        status = self.game.status
        if status is GameStatus.ALL_ENEMIES_CLEARED:
            return "player"
        if status is GameStatus.PLAYER_DEAD:
            return "enemies"
        return None

    def render_text(self) -> str:
        """Render the full map (no fog) as text for debugging."""
        if self.game is None or self.game.state is None:
            return "Environment not reset"

        state = self.game.state
        level = state.level
        rows = [[" "] * level.width for _ in range(level.height)]
        for el in level.elements:
            rows[el.pos.y][el.pos.x] = el.glyph
        p = state.player
        if level.in_bounds(p.pos.x, p.pos.y):
            rows[p.pos.y][p.pos.x] = p.glyph

        lines = [f"=== Turn {state.turn} ({state.status.value}) ==="]
        lines.extend("".join(r) for r in rows)
        lines.append(
            f"HP {p.display_hp}/{p.max_hp}  ATK {p.attack_dice}  DEF {p.defence_dice}  "
            f"Kills {state.kills}  Enemies {len(level.enemies)}"
        )
        return "\n".join(lines)


# Gymnasium wrapper for compatibility with stable-baselines3
try:
    import gymnasium as gym
    from gymnasium import spaces

    class CrawlerGymEnv(gym.Env):
        """Gymnasium-compatible wrapper for CrawlerEnv."""

        metadata = {"render_modes": ["text"]}

        def __init__(
            self,
            level_path: str = None,
            level_text: str = None,
            seed: int = None,
            max_steps: int = 500,
        ):
            super().__init__()

            self.env = CrawlerEnv(
                level_path=level_path,
                level_text=level_text,
                seed=seed,
                max_steps=max_steps,
            )

            self.observation_space = spaces.Box(
                low=0.0,
                high=1.0,
                shape=(self.env.observation_size,),
                dtype=np.float32
            )

            self.action_space = spaces.Discrete(self.env.action_size)

        def reset(self, seed=None, options=None):
            super().reset(seed=seed)
            return self.env.reset(seed=seed)

        def step(self, action):
            return self.env.step(int(action))

        def render(self):
            return self.env.render_text()

        def get_action_mask(self) -> np.ndarray:
            """Get current action mask for masked action selection."""
            return self.env.action_mask()

    class MaskedActionWrapper(gym.ActionWrapper):
        """Replaces moves the action mask rules out (known walls, map edge) with waiting."""

        def __init__(self, env: CrawlerGymEnv):
            super().__init__(env)
            self.remapped = 0

        def action(self, action):
            action = int(action)
            if not self.env.unwrapped.get_action_mask()[action]:
                self.remapped += 1
                return ACTION_WAIT
            return action

except ImportError:
    # Gymnasium not installed - the plain env and the game still work
    CrawlerGymEnv = None
    MaskedActionWrapper = None
