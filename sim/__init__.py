# Simulation module for the dungeon crawler
# This module provides:
# - dice.py: seeded dice used for attack/defence rolls
# - state.py: pure Python level, actor and game state containers
# - level.py: text grid level loader
# - mechanics.py: movement, occupancy and combat resolution
# - behaviors.py: per-kind enemy movement policies
# - visibility.py: fog-of-war tracking
# - engine.py: turn engine and win/loss state machine
# - env.py: Gym-like environment wrapper
# - runner.py: headless episode runner
# - config.py: environment-variable fallbacks for the CLIs

__version__ = "0.1.0"
