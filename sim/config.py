"""
Environment-variable configuration shared by the CLIs.

CLI flags take precedence; these are only consulted when a flag is absent.
"""

import argparse
import os
from typing import Optional

LEVEL_ENV = "CRAWLER_LEVEL"
SEED_ENV = "CRAWLER_SEED"
MUSIC_ENV = "CRAWLER_MUSIC"


def env_level(default: str) -> str:
    return os.getenv(LEVEL_ENV, default)


def env_music() -> Optional[str]:
    return os.getenv(MUSIC_ENV) or None


def resolve_seed(parser: argparse.ArgumentParser, seed: Optional[int], default: Optional[int] = None) -> Optional[int]:
    """
    Use --seed if given, else CRAWLER_SEED, else default.
    A non-integer CRAWLER_SEED is reported as a usage error.
    """
    if seed is not None:
        return seed

    raw = os.getenv(SEED_ENV)
    if not raw:
        return default

    try:
        return int(raw)
    except ValueError:
        parser.error(f"{SEED_ENV} must be an integer, got {raw!r}")
