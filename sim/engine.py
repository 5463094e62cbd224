"""
Turn Engine.

Drives one run: load a level, alternate the player's action with one action
per live enemy, and detect death or victory. Rendering and input are
injected as plain callables so the engine never touches the terminal.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np

from sim.state import GameState, GameStatus, Level, Frame, make_player
from sim.level import load_level, parse_level
from sim.mechanics import move_player
from sim.behaviors import update_enemy
from sim.visibility import FogOfWar


class Command(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    WAIT = "wait"
    QUIT = "quit"


COMMAND_VECTORS = {
    Command.UP: (0, -1),
    Command.DOWN: (0, 1),
    Command.LEFT: (-1, 0),
    Command.RIGHT: (1, 0),
}

KEY_BINDINGS = {
    "w": Command.UP, "k": Command.UP, "up": Command.UP,
    "s": Command.DOWN, "j": Command.DOWN, "down": Command.DOWN,
    "a": Command.LEFT, "h": Command.LEFT, "left": Command.LEFT,
    "d": Command.RIGHT, "l": Command.RIGHT, "right": Command.RIGHT,
    "q": Command.QUIT, "quit": Command.QUIT, "escape": Command.QUIT,
}


def parse_command(key: str) -> Command:
    """
    Map a key name to a command. Unknown keys become WAIT, which still
    lets every enemy act.
    """
    return KEY_BINDINGS.get(str(key).strip().lower(), Command.WAIT)


class Game:
    """
    One dungeon run.

    The game owns a single numpy Generator; every dice throw and enemy
    decision draws from it, so a seed plus an input sequence fully
    determines the run.
    """

    def __init__(
        self,
        seed: int = None,
        rng: np.random.Generator = None,
        on_message: Optional[Callable[[str], None]] = None,
    ):
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.on_message = on_message
        self.state: Optional[GameState] = None
        self.fog = FogOfWar()
        self._flushed = 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, path: str) -> Level:
        """Load a level file, replacing any previous run. Raises LevelLoadError."""
        level = load_level(path, self.rng)
        self._start(level)
        return level

    def load_text(self, text: str) -> Level:
        level = parse_level(text, self.rng)
        self._start(level)
        return level

    def _start(self, level: Level):
        start = level.player_start
        self.state = GameState(
            level=level,
            player=make_player(start.x, start.y, self.rng),
        )
        self.fog.reset()
        self._flushed = 0

    def _require_state(self) -> GameState:
        if self.state is None:
            raise RuntimeError("No level loaded")
        return self.state

    @property
    def level(self) -> Level:
        return self._require_state().level

    @property
    def player(self):
        return self._require_state().player

    @property
    def status(self) -> GameStatus:
        return self._require_state().status

    @property
    def kills(self) -> int:
        return self._require_state().kills

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def check_status(self) -> GameStatus:
        """Death is checked before victory."""
        state = self._require_state()
        if state.status.is_terminal:
            return state.status

        if state.player.hp <= 0:
            state.status = GameStatus.PLAYER_DEAD
        elif not state.level.enemies:
            state.status = GameStatus.ALL_ENEMIES_CLEARED
        return state.status

    def step(self, command: Command) -> Dict:
        """
        Play one full turn: the player's action, then every live enemy.

        Returns a dict with the player result and the enemy results.
        """
        state = self._require_state()
        if self.check_status().is_terminal:
            raise RuntimeError(f"Game is over ({state.status.value})")

        if command is Command.QUIT:
            state.status = GameStatus.QUIT
            return {"action": "quit", "turn": state.turn}

        state.reset_turn_counters()
        dx, dy = COMMAND_VECTORS.get(command, (0, 0))
        player_result = move_player(state, dx, dy)
        enemy_results = self.enemies_turn()
        state.turn += 1
        self._flush_messages()

        return {
            "action": player_result["action"],
            "player": player_result,
            "enemies": enemy_results,
            "turn": state.turn,
        }

    def enemies_turn(self) -> List[Dict]:
        """Each enemy alive at its own turn acts once, in load order."""
        state = self._require_state()
        results = []
        for enemy in list(state.level.enemies):
            if not enemy.is_alive:
                continue
            results.append(update_enemy(state, enemy, self.rng))
        return results

    def frame(self) -> Frame:
        """One render pass: reveal walls around the player and snapshot what is visible."""
        state = self._require_state()
        player = state.player
        self.fog.reveal(state.level, player.pos)

        return Frame(
            width=state.level.width,
            height=state.level.height,
            walls=self.fog.discovered_walls(state.level),
            enemies=self.fog.visible_enemies(state.level, player.pos),
            potions=self.fog.visible_potions(state.level, player.pos),
            player=player,
            hp=player.display_hp,
            attack_label=str(player.attack_dice),
            defence_label=str(player.defence_dice),
            kills=state.kills,
            turn=state.turn,
            status=state.status,
            message=state.last_message,
        )

    def tick(
        self,
        read_command: Callable[[], Command],
        render: Optional[Callable[[Frame], None]] = None,
    ) -> GameStatus:
        """Render, check for an ending, then read and play one command."""
        frame = self.frame()
        if render:
            render(frame)

        status = self.check_status()
        if status.is_terminal:
            return status

        self.step(read_command())
        return self.status

    def run(
        self,
        read_command: Callable[[], Command],
        render: Optional[Callable[[Frame], None]] = None,
    ) -> GameStatus:
        """Tick until the run ends and return the terminal status."""
        while True:
            status = self.tick(read_command, render)
            if status.is_terminal:
                return status

    def _flush_messages(self):
        messages = self.state.messages
        if self.on_message:
            for line in messages[self._flushed:]:
                self.on_message(line)
        self._flushed = len(messages)
