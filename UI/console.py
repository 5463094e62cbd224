import argparse
import os
import sys
from typing import Callable, List, Optional

import readchar
from colorama import Cursor, Fore, Style, ansi
from colorama import init as _color_init

from sim.engine import Game, Command, parse_command
from sim.config import env_level, env_music, resolve_seed
from sim.env import DEFAULT_LEVEL_PATH
from sim.level import LevelLoadError
from sim.state import Frame, GameStatus
from ai.logger import RolloutLogger

# ---------------- Colors ----------------
# Element colors are plain names on the model; only this module knows ANSI.
COLOR_CODES = {
    "yellow": Fore.YELLOW,
    "red": Fore.RED,
    "green": Fore.GREEN,
    "magenta": Fore.MAGENTA,
    "dark_gray": Fore.LIGHTBLACK_EX,
    "white": Fore.WHITE,
}

CLEAR_SCREEN = ansi.clear_screen() + Cursor.POS(1, 1)

PROMPT = "Move (w/a/s/d or arrows, q to quit)"

# Keys readchar reports as escape sequences
SPECIAL_KEYS = {
    readchar.key.UP: Command.UP,
    readchar.key.DOWN: Command.DOWN,
    readchar.key.LEFT: Command.LEFT,
    readchar.key.RIGHT: Command.RIGHT,
    readchar.key.ESC: Command.QUIT,
}

END_SCREENS = {
    GameStatus.PLAYER_DEAD: "You died. The dungeon keeps its secrets.",
    GameStatus.ALL_ENEMIES_CLEARED: "Every enemy is dead. You win!",
    GameStatus.QUIT: "You leave the dungeon.",
}


def _paint(text: str, color: str, use_color: bool) -> str:
    if not use_color:
        return text
    return f"{COLOR_CODES.get(color, '')}{text}{Style.RESET_ALL}"


def render_frame(frame: Frame, use_color: bool = True) -> str:
    """
    Draw the discovered map plus the status lines as one string.
    Undiscovered and empty tiles are blank.
    """
    cells: List[List[str]] = [[" "] * frame.width for _ in range(frame.height)]

    def put(el):
        if 0 <= el.pos.y < frame.height and 0 <= el.pos.x < frame.width:
            cells[el.pos.y][el.pos.x] = _paint(el.glyph, el.color, use_color)

    for w in frame.walls:
        put(w)
    for p in frame.potions:
        put(p)
    for e in frame.enemies:
        put(e)
    put(frame.player)

    lines = ["".join(row).rstrip() for row in cells]
    lines.append("")
    lines.append(
        f"HP: {frame.hp}  ATK: {frame.attack_label}  DEF: {frame.defence_label}  "
        f"Kills: {frame.kills}  Turn: {frame.turn}"
    )
    lines.append(frame.message)
    return "\n".join(lines)


# ---------------- Audio ----------------
def start_music(path: Optional[str]) -> bool:
    """
    Loop a background track with pygame if possible. Every failure is only
    a warning; a missing file is not even that.
    """
    if not path or not os.path.exists(path):
        return False

    try:
        import pygame
    except ImportError:
        print("Warning: pygame not installed, playing without music")
        return False

    try:
        pygame.mixer.init()
        pygame.mixer.music.load(path)
        pygame.mixer.music.play(-1)
    except pygame.error as e:
        print(f"Warning: Failed to play {path}: {e}")
        return False
    return True


def stop_music():
    try:
        import pygame
    except ImportError:
        return
    if pygame.mixer.get_init():
        pygame.mixer.music.stop()
        pygame.mixer.quit()


# ---------------- Session ----------------
def key_to_command(key: str) -> Command:
    """Arrow and escape keys first, then the engine's letter bindings."""
    if key in SPECIAL_KEYS:
        return SPECIAL_KEYS[key]
    return parse_command(key)


class ConsoleSession:
    """
    Connects a Game to the terminal and the optional turn log.

    read_key blocks for a single key press; it defaults to readchar.readkey
    and can be replaced to script input.
    """

    def __init__(
        self,
        game: Game,
        use_color: bool = True,
        logger: RolloutLogger = None,
        out=None,
        read_key: Optional[Callable[[], str]] = None,
    ):
        self.game = game
        self.use_color = use_color
        self.logger = logger
        self.out = out or sys.stdout
        self.read_key = read_key or readchar.readkey
        self.last_command: Optional[Command] = None
        self._logged_messages = 0

    def render(self, frame: Frame):
        if self.use_color:
            self.out.write(CLEAR_SCREEN)
        self.out.write(render_frame(frame, self.use_color) + "\n")
        self.out.flush()

        if self.logger and self.last_command is not None:
            messages = self.game.state.messages
            self.logger.log_turn(
                turn=frame.turn,
                command=self.last_command.value,
                frame=frame.to_dict(),
                messages=messages[self._logged_messages:],
            )
            self._logged_messages = len(messages)

    def read_command(self) -> Command:
        self.out.write(PROMPT + "\n")
        self.out.flush()
        try:
            key = self.read_key()
        except EOFError:
            key = "q"
        self.last_command = key_to_command(key)
        return self.last_command

    def play(self) -> GameStatus:
        status = self.game.run(self.read_command, self.render)
        self.out.write(_paint(END_SCREENS[status], "yellow", self.use_color) + "\n")
        if self.logger:
            self.logger.end_episode({
                "status": status.value,
                "turns": self.game.state.turn,
                "kills": self.game.state.kills,
            })
        return status


# ---------------- CLI ----------------
def parse_args(argv) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="dungeon-crawler", description="Play a dungeon level in the terminal")
    parser.add_argument(
        "level",
        nargs="?",
        default=env_level(DEFAULT_LEVEL_PATH),
        help="Level file (default: env CRAWLER_LEVEL or bundled level1.txt)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: env CRAWLER_SEED or random)")
    parser.add_argument("--music", default=env_music(), help="Background track to loop (env CRAWLER_MUSIC)")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    parser.add_argument("--log-dir", default=None, help="Write a JSONL turn log to this directory")
    args = parser.parse_args(argv)

    args.seed = resolve_seed(parser, args.seed)
    return args


def main(argv=None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    use_color = not args.no_color and sys.stdout.isatty()
    if use_color:
        _color_init()

    game = Game(seed=args.seed)
    try:
        game.load(args.level)
    except LevelLoadError as e:
        print(f"Error: {e}")
        return 1

    logger = RolloutLogger(log_dir=args.log_dir, enabled=True) if args.log_dir else None
    if logger:
        logger.start_episode(seed=args.seed)

    start_music(args.music)
    try:
        ConsoleSession(game, use_color=use_color, logger=logger).play()
    except KeyboardInterrupt:
        print("\nInterrupted.")
    finally:
        stop_music()
    return 0


if __name__ == "__main__":
    sys.exit(main())
