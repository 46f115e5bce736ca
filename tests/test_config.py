"""Tests for configuration module."""

from pathlib import Path

import pytest

from multigit.config import Registry, RepositoryEntry, Settings, canonical_path
from multigit.errors import ConfigError


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        """Test default settings."""
        settings = Settings()
        assert settings.ui_command == "gitup"
        assert settings.max_depth == 10

    def test_negative_depth_rejected(self):
        """Test that max_depth must not be negative."""
        with pytest.raises(ValueError):
            Settings(max_depth=-1)


class TestRegistry:
    """Tests for Registry."""

    def test_add_canonicalizes_path(self, clean_repo: Path):
        """Test that relative-looking paths collapse onto one entry."""
        registry = Registry()
        assert registry.add(clean_repo / ".." / clean_repo.name) is True
        assert registry.list()[0].path == clean_repo

    def test_add_twice_is_noop(self, clean_repo: Path):
        """Test that re-registering does not duplicate entries."""
        registry = Registry()
        assert registry.add(clean_repo) is True
        assert registry.add(clean_repo) is False
        assert len(registry.list()) == 1

    def test_add_through_symlink(self, clean_repo: Path, temp_dir: Path):
        """Test that a symlinked path is the same entry as its target."""
        link = temp_dir / "link"
        link.symlink_to(clean_repo, target_is_directory=True)

        registry = Registry()
        registry.add(clean_repo)
        assert registry.add(link) is False
        assert registry.contains(link)

    def test_list_keeps_registration_order(self, make_repo):
        """Test that iteration order is registration order."""
        second = make_repo("b")
        first = make_repo("a")
        registry = Registry()
        registry.add(second)
        registry.add(first)
        assert [e.path for e in registry.list()] == [second, first]

    def test_remove_exact(self, make_repo):
        """Test removing a single repository."""
        one = make_repo("one")
        two = make_repo("two")
        registry = Registry()
        registry.add(one)
        registry.add(two)

        removed = registry.remove(one)
        assert [e.path for e in removed] == [one]
        assert [e.path for e in registry.list()] == [two]

    def test_remove_directory_drops_nested(self, workspace: Path):
        """Test that removing a directory removes repositories below it."""
        registry = Registry()
        registry.add(workspace / "alpha")
        registry.add(workspace / "group" / "beta")
        registry.add(workspace / "group" / "deep" / "gamma")

        removed = registry.remove(workspace / "group")
        assert len(removed) == 2
        assert [e.path for e in registry.list()] == [workspace / "alpha"]

    def test_remove_unknown_returns_empty(self, clean_repo: Path):
        """Test removing a path that is not registered."""
        registry = Registry()
        assert registry.remove(clean_repo) == []

    def test_clear(self, make_repo):
        """Test that clear empties the registry."""
        registry = Registry()
        registry.add(make_repo("a"))
        registry.add(make_repo("b"))
        assert registry.clear() == 2
        assert registry.list() == []

    def test_entry_timestamp_is_aware(self, clean_repo: Path):
        """Test that entries record a timezone-aware registration time."""
        entry = RepositoryEntry(path=clean_repo)
        assert entry.registered_at.tzinfo is not None


class TestRegistryPersistence:
    """Tests for loading and saving the registry."""

    def test_load_missing_file(self, config_path: Path):
        """Test loading from a nonexistent file returns an empty registry."""
        registry = Registry.load(config_path)
        assert registry.list() == []
        assert registry.settings == Settings()

    def test_save_and_load(self, config_path: Path, make_repo):
        """Test saving and loading preserves entries and order."""
        registry = Registry(settings=Settings(ui_command="gitk --all", max_depth=3))
        second = make_repo("zeta")
        first = make_repo("alpha")
        registry.add(second)
        registry.add(first)

        registry.save(config_path)
        assert config_path.exists()

        loaded = Registry.load(config_path)
        assert [e.path for e in loaded.list()] == [second, first]
        assert loaded.settings.ui_command == "gitk --all"
        assert loaded.settings.max_depth == 3
        assert loaded.list()[0].registered_at == registry.list()[0].registered_at

    def test_load_malformed_toml(self, config_path: Path):
        """Test that invalid TOML raises ConfigError."""
        config_path.parent.mkdir(parents=True)
        config_path.write_text("[repositories\nnot toml = = =\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            Registry.load(config_path)

    def test_load_non_utf8(self, config_path: Path):
        """Test that undecodable bytes raise ConfigError."""
        config_path.parent.mkdir(parents=True)
        config_path.write_bytes(b"\xff\xfe garbage")
        with pytest.raises(ConfigError, match="Invalid UTF-8"):
            Registry.load(config_path)

    def test_save_and_load_quoted_path(self, config_path: Path, make_repo):
        """Test that a path containing a double quote survives a round trip."""
        quoted = make_repo('a"b')
        registry = Registry()
        registry.add(quoted)
        registry.save(config_path)

        loaded = Registry.load(config_path)
        assert loaded.contains(quoted)
        assert [e.path for e in loaded.list()] == [quoted]

    def test_load_invalid_schema(self, config_path: Path):
        """Test that a document failing validation raises ConfigError."""
        config_path.parent.mkdir(parents=True)
        config_path.write_text('[settings]\nmax_depth = "deep"\n')
        with pytest.raises(ConfigError, match="Invalid configuration"):
            Registry.load(config_path)

    def test_load_unreadable(self, config_path: Path):
        """Test that a directory in place of the file raises ConfigError."""
        config_path.mkdir(parents=True)
        with pytest.raises(ConfigError, match="Could not read"):
            Registry.load(config_path)

    def test_load_hand_written_file(self, config_path: Path, clean_repo: Path):
        """Test loading a file written by hand without timestamps."""
        config_path.parent.mkdir(parents=True)
        config_path.write_text(
            f'[repositories."{clean_repo}"]\npath = "{clean_repo}"\n'
        )
        registry = Registry.load(config_path)
        assert registry.contains(clean_repo)


def test_canonical_path_expands_home(monkeypatch, temp_dir: Path):
    """Test that ~ is expanded before resolving."""
    monkeypatch.setenv("HOME", str(temp_dir))
    assert canonical_path("~/somewhere") == temp_dir / "somewhere"
