# AI module for the dungeon crawler player agent
# This module provides:
# - schema.py: observation and action specifications
# - featurize.py: frame to numeric vector conversion
# - policy_heuristic.py: non-RL player autopilot
# - logger.py: JSONL rollout logging

__version__ = "0.1.0"
