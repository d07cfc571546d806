"""Minimal read-only git access via subprocess.

Only the queries the scanner needs: locate the work tree, check HEAD,
list tracked files and stream ``git log`` output. Every command runs with
``GIT_OPTIONAL_LOCKS=0`` so nothing (not even the index stat cache) is
written to the repository.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Optional

from ..exceptions import HistoryUnavailable, RepositoryError
from ..logging_config import get_logger
from ..paths import normalize_path

logger = get_logger(__name__)

# Global options applied to every git invocation
_GIT_CONFIG = (
    "-c", "core.quotePath=false",
    "-c", "log.showSignature=false",
    "-c", "color.ui=never",
)

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    env["GIT_OPTIONAL_LOCKS"] = "0"
    env["GIT_TERMINAL_PROMPT"] = "0"
    env["LC_ALL"] = "C"
    env.pop("GIT_DIR", None)
    env.pop("GIT_WORK_TREE", None)
    return env


class GitRepository:
    """A handle on one repository's work tree and object database.

    Not safe for concurrent use: each thread that wants to read history in
    parallel needs its own handle.
    """

    def __init__(self, path: str | Path, timeout_seconds: int = 30):
        self.timeout_seconds = timeout_seconds
        start = Path(path).resolve()
        if not start.exists():
            raise RepositoryError("path does not exist", repo_path=start)
        self._cwd = start if start.is_dir() else start.parent
        toplevel = self.run(["rev-parse", "--show-toplevel"]).strip()
        if not toplevel:
            raise RepositoryError("bare repository has no work tree", repo_path=start)
        self.root = Path(toplevel)
        self._cwd = self.root

    def __repr__(self) -> str:
        return f"GitRepository({str(self.root)!r})"

    # ── One-shot commands ──────────────────────────────────────

    def run(self, args: list[str], check: bool = True) -> str:
        """Run a git command and return stdout.

        Raises:
            RepositoryError: If git is missing, times out, or (with
                ``check``) exits non-zero
        """
        cmd = ["git", *_GIT_CONFIG, "-C", str(self._cwd), *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout_seconds,
                env=_git_env(),
                check=False,
            )
        except FileNotFoundError:
            raise RepositoryError("git executable not found", repo_path=self._cwd)
        except subprocess.TimeoutExpired:
            raise RepositoryError(
                f"git {args[0]} timed out after {self.timeout_seconds}s", repo_path=self._cwd
            )
        if check and result.returncode != 0:
            stderr = result.stderr.decode(_ENCODING, _ERRORS).strip()
            raise RepositoryError(
                f"git {args[0]} failed (rc={result.returncode}): {stderr}", repo_path=self._cwd
            )
        return result.stdout.decode(_ENCODING, _ERRORS)

    def head(self) -> Optional[str]:
        """SHA of HEAD, or None for a repository with no commits."""
        out = self.run(["rev-parse", "--verify", "--quiet", "HEAD^{commit}"], check=False)
        sha = out.strip()
        return sha or None

    def require_head(self) -> str:
        """SHA of HEAD.

        Raises:
            HistoryUnavailable: If there are no commits
        """
        sha = self.head()
        if sha is None:
            raise HistoryUnavailable(repo_path=self.root)
        return sha

    def list_files(self, include_untracked: bool = False) -> list[str]:
        """Tracked (and optionally untracked, non-ignored) paths, normalised."""
        args = ["ls-files", "-z", "--cached"]
        if include_untracked:
            args += ["--others", "--exclude-standard"]
        out = self.run(args)
        return sorted({normalize_path(p) for p in out.split("\0") if p})

    # ── Streaming ──────────────────────────────────────────────

    def stream(self, args: list[str]) -> Iterator[str]:
        """Yield stdout lines of a long-running git command lazily.

        The process is killed if the consumer stops early. A non-zero exit
        after the output is drained is reported as a RepositoryError, so a
        walk that hits a corrupt object never ends silently.
        """
        cmd = ["git", *_GIT_CONFIG, "-C", str(self._cwd), *args]
        logger.debug("Streaming: %s", " ".join(cmd))
        # stderr goes to a spool file so a chatty git cannot fill the pipe
        # and stall the stdout reader
        errors = tempfile.TemporaryFile()
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=errors,
                env=_git_env(),
            )
        except FileNotFoundError:
            errors.close()
            raise RepositoryError("git executable not found", repo_path=self._cwd)

        finished = False
        try:
            assert proc.stdout is not None
            for raw in proc.stdout:
                yield raw.decode(_ENCODING, _ERRORS).rstrip("\n")
            finished = True
        finally:
            if not finished and proc.poll() is None:
                proc.kill()
            if proc.stdout:
                proc.stdout.close()
            returncode = proc.wait()
            errors.seek(0)
            stderr = errors.read()
            errors.close()

        if returncode != 0:
            message = stderr.decode(_ENCODING, _ERRORS).strip()
            raise RepositoryError(
                f"git {args[0]} failed (rc={returncode}): {message}", repo_path=self._cwd
            )
