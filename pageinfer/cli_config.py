"""``.env`` discovery for the command-line entry points."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "pageinfer"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"
EXAMPLE_ENV_FILE = Path(__file__).parent.parent / ".env.example"


def load_config(
    *,
    cwd: Path,
    load_env: Callable[[Path], bool],
    copy_file: Callable[[Path, Path], object],
    config_dir: Path = CONFIG_DIR,
    config_env_file: Path = CONFIG_ENV_FILE,
    example_file: Path = EXAMPLE_ENV_FILE,
) -> Optional[Path]:
    """Load the first ``.env`` found and return its path.

    Search order is ``<cwd>/.env`` and then ``config_env_file``. When neither
    exists, ``example_file`` is copied to ``config_env_file`` as a starting
    point and loaded.
    """
    local_env = cwd / ".env"
    if local_env.is_file():
        load_env(local_env)
        return local_env

    if config_env_file.is_file():
        load_env(config_env_file)
        return config_env_file

    if not example_file.is_file():
        return None

    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        copy_file(example_file, config_env_file)
    except OSError as exc:
        LOGGER.debug("Could not create %s: %s", config_env_file, exc)
        return None

    LOGGER.info(
        "Created config file at %s from .env.example. "
        "Please edit it with your OPENAI_API_KEY.",
        config_env_file,
    )
    load_env(config_env_file)
    return config_env_file
