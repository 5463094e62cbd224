import io
import json

import pytest
import readchar

from UI.console import (
    ConsoleSession, CLEAR_SCREEN, key_to_command, parse_args, render_frame, start_music, main,
)
from sim.engine import Command
from sim.state import GameStatus


SEALED_RAT = "@ #r"


def _keys(*keys):
    """Key reader that replays keys, then reports end of input."""
    keys = iter(keys)

    def read_key():
        try:
            return next(keys)
        except StopIteration:
            raise EOFError
    return read_key


def test_render_without_color(make_game):
    game = make_game("#@ r\n#       #")
    lines = render_frame(game.frame(), use_color=False).splitlines()

    assert lines[0] == "#@ r"
    assert lines[1] == "#"  # far wall still undiscovered
    assert "HP: 100" in lines[3]
    assert "ATK: 2d6+2" in lines[3]
    assert "DEF: 2d6+0" in lines[3]


def test_render_with_color_wraps_glyphs(make_game):
    game = make_game("@r")
    text = render_frame(game.frame(), use_color=True)
    assert "\x1b[" in text


def test_session_quits_on_q(make_game):
    out = io.StringIO()
    session = ConsoleSession(make_game(SEALED_RAT), use_color=False, out=out, read_key=_keys("q"))

    assert session.play() is GameStatus.QUIT
    assert "You leave the dungeon." in out.getvalue()


def test_session_treats_end_of_input_as_quit(make_game):
    game = make_game(SEALED_RAT)
    session = ConsoleSession(game, use_color=False, out=io.StringIO(), read_key=_keys("d", "x"))

    assert session.play() is GameStatus.QUIT
    assert game.state.turn == 2
    assert session.last_command is Command.QUIT


def test_session_writes_turn_log(make_game, tmp_path):
    from ai.logger import RolloutLogger

    logger = RolloutLogger(log_dir=str(tmp_path))
    session = ConsoleSession(
        make_game(SEALED_RAT), use_color=False, logger=logger, out=io.StringIO(), read_key=_keys("d", "q")
    )
    session.play()

    entries = [json.loads(line) for f in tmp_path.iterdir() for line in f.read_text().splitlines()]
    assert [e["type"] for e in entries] == ["turn", "episode_end"]
    assert entries[0]["command"] == "right"
    assert entries[1]["final_info"]["status"] == "quit"


def test_missing_music_is_ignored(tmp_path):
    assert start_music(None) is False
    assert start_music(str(tmp_path / "missing.ogg")) is False


def test_main_reports_missing_level(tmp_path, capsys):
    assert main([str(tmp_path / "nope.txt"), "--no-color"]) == 1
    assert "Error" in capsys.readouterr().out


def test_main_plays_a_level(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("CRAWLER_MUSIC", raising=False)
    path = tmp_path / "level.txt"
    path.write_text(SEALED_RAT, encoding="utf-8")
    monkeypatch.setattr(readchar, "readkey", _keys("q"))

    assert main([str(path), "--no-color", "--seed", "4"]) == 0
    assert "You leave the dungeon." in capsys.readouterr().out


@pytest.mark.parametrize("status", list(GameStatus)[1:])
def test_every_ending_has_a_screen(status):
    from UI.console import END_SCREENS
    assert status in END_SCREENS


@pytest.mark.parametrize("key,expected", [
    (readchar.key.UP, Command.UP),
    (readchar.key.DOWN, Command.DOWN),
    (readchar.key.LEFT, Command.LEFT),
    (readchar.key.RIGHT, Command.RIGHT),
    (readchar.key.ESC, Command.QUIT),
    ("W", Command.UP),
    ("l", Command.RIGHT),
    ("z", Command.WAIT),
])
def test_single_keys_map_to_commands(key, expected):
    assert key_to_command(key) is expected


def test_arrow_keys_move_without_enter(make_game):
    game = make_game(SEALED_RAT)
    session = ConsoleSession(game, use_color=False, out=io.StringIO(),
                             read_key=_keys(readchar.key.RIGHT, readchar.key.LEFT, "q"))

    session.play()

    assert game.state.turn == 2
    assert game.player.pos.as_tuple() == (0, 0)


def test_color_render_clears_screen(make_game):
    out = io.StringIO()
    session = ConsoleSession(make_game("@r"), use_color=True, out=out, read_key=_keys())
    session.render(session.game.frame())
    assert out.getvalue().startswith(CLEAR_SCREEN)


def test_seed_from_environment(monkeypatch):
    monkeypatch.setenv("CRAWLER_SEED", "17")
    assert parse_args([]).seed == 17
    assert parse_args(["--seed", "3"]).seed == 3


def test_bad_seed_in_environment_is_a_usage_error(monkeypatch, capsys):
    monkeypatch.setenv("CRAWLER_SEED", "abc")
    with pytest.raises(SystemExit) as exc:
        parse_args([])
    assert exc.value.code == 2
    assert "CRAWLER_SEED" in capsys.readouterr().err
