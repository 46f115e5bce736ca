"""Pytest configuration and fixtures for multigit tests."""

import tempfile
from pathlib import Path

import pytest
from click.testing import CliRunner
from git import Repo


def init_repo(repo_path: Path) -> Repo:
    """Create a git repository with one commit at repo_path."""
    repo_path.mkdir(parents=True, exist_ok=True)

    # Initialize git repo
    repo = Repo.init(repo_path)

    # Configure git user
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit
    readme = repo_path / "README.md"
    readme.write_text(f"# {repo_path.name}\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    return repo


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def make_repo(temp_dir: Path):
    """Factory creating committed repositories below temp_dir."""

    def _make(relative: str) -> Path:
        path = temp_dir / relative
        init_repo(path)
        return path

    return _make


@pytest.fixture
def workspace(temp_dir: Path, make_repo):
    """A directory tree holding three nested repositories and some noise."""
    root = temp_dir / "workspace"
    make_repo("workspace/alpha")
    make_repo("workspace/group/beta")
    make_repo("workspace/group/deep/gamma")

    # Plain directories and a hidden directory holding a repo that must be skipped
    (root / "notes").mkdir(parents=True)
    (root / "notes" / "todo.txt").write_text("nothing here\n")
    make_repo("workspace/.cache/hidden")

    yield root


@pytest.fixture
def dirty_repo(make_repo):
    """A repository with an untracked file."""
    path = make_repo("dirty")
    (path / "scratch.txt").write_text("work in progress\n")
    return path


@pytest.fixture
def clean_repo(make_repo):
    """A repository with no changes."""
    return make_repo("clean")


@pytest.fixture
def remote_pair(temp_dir: Path):
    """A bare remote and a clone of it tracking origin."""
    seed = init_repo(temp_dir / "seed")
    bare_path = temp_dir / "remote.git"
    seed.clone(bare_path, bare=True)

    clone_path = temp_dir / "clone"
    clone = Repo.clone_from(bare_path, clone_path)
    clone.config_writer().set_value("user", "name", "Test User").release()
    clone.config_writer().set_value("user", "email", "test@example.com").release()

    return bare_path, clone_path


@pytest.fixture
def config_path(temp_dir: Path):
    """Registry file location isolated from the user's real config."""
    return temp_dir / "config" / "multigit.toml"


@pytest.fixture
def runner():
    return CliRunner()
