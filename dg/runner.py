"""
Script: dg/runner.py
What: Runs shell commands attached to a pseudo-terminal.
Doing: Streams the child's combined output as it arrives, optionally keeps a copy, and checks the exit status.
Why: docker and fig only print progress bars and colors when they think they talk to a terminal.
Goal: One synchronous "run this command" call for every container step.
"""

from __future__ import annotations

import errno
import os
import pty
import subprocess
import sys
from dataclasses import dataclass
from typing import TextIO

from dg.common import DgError

READ_CHUNK_SIZE = 1024


@dataclass(frozen=True)
class CommandResult:
    command: str
    exit_status: int
    output: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


def wrap_with_sudo(command: str) -> str:
    """Run `command` through a root shell that keeps the caller's environment."""
    return f"sudo -E bash -c '{command}'"


def _copy_pty_output(master_fd: int, *, sink: TextIO | None, keep: bool) -> bytes:
    # Read until the child closes its side of the terminal.
    chunks: list[bytes] = []
    while True:
        try:
            data = os.read(master_fd, READ_CHUNK_SIZE)
        except OSError as exc:
            # Linux reports EIO on the master once the slave side is gone.
            if exc.errno != errno.EIO:
                raise
            break
        if not data:
            break
        if sink is not None:
            sink.write(data.decode("utf-8", errors="replace"))
            sink.flush()
        if keep:
            chunks.append(data)
    return b"".join(chunks)


def run_with_output(
    command: str,
    *,
    capture: bool = False,
    echo: bool = True,
    check: bool = True,
    use_sudo: bool = False,
    sink: TextIO | None = None,
) -> CommandResult:
    """
    Run `command` in a pseudo-terminal and wait for it.

    - `echo`: copy output to `sink` (stdout by default) while it runs.
    - `capture`: keep the output and return it in `CommandResult.output`.
    - `check`: a non-zero exit status raises `DgError`. Status probes pass
      `check=False` and inspect `exit_status` themselves.
    """
    out = sink if sink is not None else sys.stdout
    full_command = wrap_with_sudo(command) if use_sudo else command
    print(f"Running `{full_command}` in {os.getcwd()}", file=out)

    master_fd, slave_fd = pty.openpty()
    try:
        process = subprocess.Popen(
            ["/bin/sh", "-c", full_command],
            stdin=slave_fd,
            stdout=slave_fd,
            stderr=slave_fd,
            close_fds=True,
        )
    except OSError as exc:
        os.close(master_fd)
        os.close(slave_fd)
        raise DgError(str(exc), f"executing {command}") from exc

    # The child holds its own copy; closing ours lets EIO signal the end.
    os.close(slave_fd)
    try:
        raw_output = _copy_pty_output(master_fd, sink=out if echo else None, keep=capture)
    finally:
        os.close(master_fd)

    # Popen.wait() hides ECHILD and reports 0, so reap the child directly.
    try:
        _pid, wait_status = os.waitpid(process.pid, 0)
        exit_status = os.waitstatus_to_exitcode(wait_status)
    except ChildProcessError:
        # Someone else reaped the child first; there is no status left to read.
        print("The child process exited!", file=out)
        exit_status = 0
    process.returncode = exit_status

    if check and exit_status != 0:
        raise DgError(f"exit code was {exit_status}", f"executing {command}")

    output = raw_output.decode("utf-8", errors="replace") if capture else None
    return CommandResult(command=full_command, exit_status=exit_status, output=output)
