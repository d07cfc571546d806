"""Shared test fixtures for Polyglot Scanner tests."""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Union

import pytest

GIT = shutil.which("git")

# Fixed starting clock so commit ids and timestamps are reproducible
BASE_TIME = 1_700_000_000


class RepoBuilder:
    """Build a throw-away git repository commit by commit."""

    def __init__(self, root: Path):
        self.root = root
        self.clock = BASE_TIME
        root.mkdir(parents=True, exist_ok=True)
        self.env = dict(os.environ)
        self.env.update(
            {
                "HOME": str(root.parent),
                "GIT_CONFIG_NOSYSTEM": "1",
                "GIT_TERMINAL_PROMPT": "0",
            }
        )
        self.git("init", "-q")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "core.autocrlf", "false")

    def git(self, *args: str, env: Optional[dict] = None) -> str:
        result = subprocess.run(
            ["git", "-C", str(self.root), *args],
            capture_output=True,
            text=True,
            env=env or self.env,
        )
        if result.returncode != 0:
            raise AssertionError(f"git {' '.join(args)} failed: {result.stderr}")
        return result.stdout

    def write(self, path: str, content: Union[str, bytes] = "x\n") -> Path:
        full = self.root / path
        full.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            full.write_bytes(content)
        else:
            full.write_text(content, encoding="utf-8")
        return full

    def remove(self, path: str) -> None:
        self.git("rm", "-q", path)

    def move(self, old: str, new: str) -> None:
        (self.root / new).parent.mkdir(parents=True, exist_ok=True)
        self.git("mv", old, new)

    def commit(
        self,
        message: str = "change",
        author: str = "Alice",
        email: str = "alice@example.com",
        when: Optional[int] = None,
        co_authors: tuple = (),
        committer: Optional[tuple[str, str]] = None,
        committed: Optional[int] = None,
    ) -> str:
        """Stage everything and commit; returns the new commit id.

        The committer defaults to the author, and the commit time to the
        author time.
        """
        if when is None:
            self.clock += 60
            when = self.clock
        committer_name, committer_email = committer or (author, email)
        if co_authors:
            message += "\n\n" + "\n".join(f"Co-authored-by: {c}" for c in co_authors)
        env = dict(self.env)
        env.update(
            {
                "GIT_AUTHOR_NAME": author,
                "GIT_AUTHOR_EMAIL": email,
                "GIT_COMMITTER_NAME": committer_name,
                "GIT_COMMITTER_EMAIL": committer_email,
                "GIT_AUTHOR_DATE": f"@{when} +0000",
                "GIT_COMMITTER_DATE": f"@{committed or when} +0000",
            }
        )
        self.git("add", "-A", env=env)
        self.git("commit", "-q", "--allow-empty", "-m", message, env=env)
        return self.head()

    def merge(self, branch: str, message: Optional[str] = None) -> str:
        """Merge ``branch`` into the current branch with a merge commit."""
        self.clock += 60
        env = dict(self.env)
        env.update(
            {
                "GIT_AUTHOR_NAME": "Alice",
                "GIT_AUTHOR_EMAIL": "alice@example.com",
                "GIT_COMMITTER_NAME": "Alice",
                "GIT_COMMITTER_EMAIL": "alice@example.com",
                "GIT_AUTHOR_DATE": f"@{self.clock} +0000",
                "GIT_COMMITTER_DATE": f"@{self.clock} +0000",
            }
        )
        self.git("merge", "-q", "--no-ff", "-m", message or f"merge {branch}", branch, env=env)
        return self.head()

    def object_path(self, rev: str) -> Path:
        """Loose object file holding ``rev``."""
        sha = self.git("rev-parse", rev).strip()
        return self.root / ".git" / "objects" / sha[:2] / sha[2:]

    def head(self) -> str:
        return self.git("rev-parse", "HEAD").strip()


@pytest.fixture
def repo(tmp_path):
    """An empty git repository at ``tmp_path / "repo"``."""
    if GIT is None:
        pytest.skip("git not found")
    return RepoBuilder(tmp_path / "repo")
