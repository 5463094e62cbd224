import json
import os

import numpy as np

from ai.logger import RolloutLogger, convert_numpy


def _entries(log_dir):
    return [json.loads(line) for f in sorted(os.listdir(log_dir))
            for line in open(os.path.join(log_dir, f), encoding="utf-8")]


def test_convert_numpy_nested():
    value = {"a": np.int64(3), "b": [np.float32(0.5), np.bool_(True)], "c": np.arange(2)}
    assert convert_numpy(value) == {"a": 3, "b": [0.5, True], "c": [0, 1]}


def test_step_and_episode_end_are_written(tmp_path):
    logger = RolloutLogger(log_dir=str(tmp_path), include_obs=True)
    logger.start_episode(seed=np.int64(9), episode_id="ep1")
    logger.log_step(
        obs=np.zeros(3, dtype=np.float32),
        action_index=np.int64(2),
        action_dict={"index": 2, "command": "left"},
        reward=np.float32(-0.05),
        reward_components={"kills": 0},
        done=False,
        truncated=False,
        info={"status": "playing", "hp": 100, "kills": 0, "turn": 1},
        next_obs=np.ones(3, dtype=np.float32),
    )
    logger.end_episode({"winner": None})

    step, end = _entries(str(tmp_path))
    assert step["seed"] == 9
    assert step["episode_id"] == "ep1"
    assert step["obs"] == [0.0, 0.0, 0.0]
    assert step["next_obs"] == [1.0, 1.0, 1.0]
    assert end["type"] == "episode_end"
    assert end["total_steps"] == 1


def test_disabled_logger_writes_nothing(tmp_path):
    log_dir = tmp_path / "off"
    logger = RolloutLogger(log_dir=str(log_dir), enabled=False)
    logger.start_episode()
    logger.log_turn(1, "up", {}, [])
    logger.end_episode({"status": "quit"})
    assert not log_dir.exists()


def test_write_failure_only_warns(tmp_path, capsys):
    logger = RolloutLogger(log_dir=str(tmp_path))
    logger.start_episode()
    logger.current_file = str(tmp_path / "missing_dir" / "log.jsonl")
    logger.log_turn(1, "up", {"hp": 10}, ["hello"])
    assert "Warning" in capsys.readouterr().out
