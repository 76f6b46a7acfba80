"""Repository configuration stored in <repo>/aptian.conf."""

import logging
from pathlib import Path

from debian import deb822
from pydantic import BaseModel, Field, ValidationError

from aptian.constants import CONFIG_FILENAME
from aptian.errors import ConfigError
from aptian.utils import atomic_write_text

logger = logging.getLogger(__name__)


class RepositoryConfig(BaseModel):
    """Settings persisted in the repository base directory."""

    gpg: str = Field(min_length=1, description="GPG key used to sign Release files")


def config_path(repo_dir: Path) -> Path:
    return repo_dir / CONFIG_FILENAME


def load_config(repo_dir: Path) -> RepositoryConfig:
    """Read the repository configuration.

    Raises:
        ConfigError: if the file is absent, unreadable or lacks a signing key.
    """
    path = config_path(repo_dir)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"could not open {CONFIG_FILENAME} file in '{repo_dir}'. Non-aptian repo?") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"could not read '{path}': {e}") from e

    entry = deb822.Deb822(text)
    try:
        config = RepositoryConfig(gpg=entry.get("GPG", "").strip())
    except ValidationError as e:
        raise ConfigError(f"'{path}' has no 'GPG:' signing key") from e
    logger.debug(f"Loaded configuration from {path}")
    return config


def save_config(repo_dir: Path, config: RepositoryConfig) -> Path:
    entry = deb822.Deb822()
    entry["GPG"] = config.gpg
    path = config_path(repo_dir)
    atomic_write_text(path, entry.dump())
    return path
