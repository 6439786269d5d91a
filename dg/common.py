"""
Script: dg/common.py
What: Shared helper functions used by all `dg` modules.
Doing: Wraps env reads, plain command execution, and git revision/branch queries.
Why: Avoids duplicated helper code.
Goal: Keep failure reporting consistent across every command.
"""

from __future__ import annotations

import os
import subprocess
from typing import Mapping, Sequence


class DgError(RuntimeError):
    """Raised when a dg step hits a fatal error condition."""

    def __init__(self, message: str, step: str = "executing") -> None:
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self) -> str:
        return f"An error occurred while {self.step}: {self.message}"


def optional_env(name: str, default: str = "", environ: Mapping[str, str] | None = None) -> str:
    """Return an environment variable with a fallback default."""
    source = os.environ if environ is None else environ
    return source.get(name, default)


def run_cmd(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    cwd: str | None = None,
) -> str:
    """Run a command and return stdout, raising a readable error on failure."""
    try:
        result = subprocess.run(
            list(args),
            check=True,
            text=True,
            capture_output=capture_output,
            cwd=cwd,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        stdout = (exc.stdout or "").strip()
        details = stderr or stdout or f"exit code was {exc.returncode}"
        raise DgError(details, f"executing {' '.join(args)}") from exc
    except OSError as exc:
        # Missing executable or permission problem before the child started.
        raise DgError(str(exc), f"executing {' '.join(args)}") from exc

    if not capture_output:
        return ""
    return result.stdout


def git_head_revision(cwd: str | None = None) -> str:
    """Return the current commit hash of the repository at `cwd`."""
    return run_cmd(["git", "rev-parse", "HEAD"], cwd=cwd).strip()


def git_current_branch(cwd: str | None = None) -> str:
    """
    Return the checked-out branch name.

    `symbolic-ref -q` prints nothing on a detached HEAD, so callers can get
    an empty string back.
    """
    try:
        return run_cmd(["git", "symbolic-ref", "--short", "-q", "HEAD"], cwd=cwd).strip()
    except DgError:
        # Exit code 1 here only means "not on a branch".
        return ""
