"""
Configuration handling for multigit.

Defines the registry schema and provides methods for loading/saving the
registry of repositories from the TOML configuration file.
"""

from datetime import datetime, timezone
from pathlib import Path
import tomllib

import toml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError


# Default location for the registry file
DEFAULT_CONFIG_PATH = Path("~/.config/multigit/config.toml")


def canonical_path(path: Path | str) -> Path:
    """Expand ~, absolutize and resolve symlinks so paths compare equal."""
    return Path(path).expanduser().resolve()


class Settings(BaseModel):
    """User options stored next to the registry."""

    # Command used by `multigit ui`, split with shell rules
    ui_command: str = Field(
        default="gitup", description="External git UI to launch for a repository"
    )
    # How deep discovery walks below a registered directory
    max_depth: int = Field(
        default=10, ge=0, description="Maximum directory depth searched for repositories"
    )


class RepositoryEntry(BaseModel):
    """A single registered git repository."""

    path: Path = Field(..., description="Canonical path to the repository root")
    registered_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the repository was registered",
    )


class Registry(BaseModel):
    """The persisted set of repositories managed by multigit."""

    settings: Settings = Field(default_factory=Settings)
    # Keyed by canonical path string; insertion order is iteration order
    repositories: dict[str, RepositoryEntry] = Field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "Registry":
        """Load the registry from a TOML file.

        A missing file is an empty registry. An unreadable or malformed file
        raises ConfigError.
        """
        path = Path(path).expanduser()
        if not path.exists():
            return cls()
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise ConfigError(f"Invalid UTF-8 in {path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    def save(self, path: Path) -> None:
        """Save the registry to a TOML file."""
        path = Path(path).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                toml.dump(self.model_dump(mode="json"), f)
        except OSError as e:
            raise ConfigError(f"Could not write config file {path}: {e}") from e

    def add(self, path: Path | str) -> bool:
        """Register a repository. Returns False if it was already registered."""
        resolved = canonical_path(path)
        key = str(resolved)
        if key in self.repositories:
            return False
        self.repositories[key] = RepositoryEntry(path=resolved)
        return True

    def remove(self, path: Path | str) -> list[RepositoryEntry]:
        """Unregister a repository and any repository located underneath it."""
        resolved = canonical_path(path)
        removed = []
        for key, entry in list(self.repositories.items()):
            if entry.path == resolved or resolved in entry.path.parents:
                removed.append(self.repositories.pop(key))
        return removed

    def contains(self, path: Path | str) -> bool:
        return str(canonical_path(path)) in self.repositories

    def list(self) -> list[RepositoryEntry]:
        """Registered repositories in registration order."""
        return list(self.repositories.values())

    def clear(self) -> int:
        """Drop every entry, returning how many there were."""
        count = len(self.repositories)
        self.repositories.clear()
        return count
