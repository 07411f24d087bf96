"""Working-tree diff for the /diff command.

Tracked changes come from `git diff`; untracked files are shown as
additions via `git diff --no-index /dev/null <file>`.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from termchat.logging import get_logger

log = get_logger("git")


@dataclass(frozen=True)
class GitDiff:
    """Result of a diff query."""

    is_repo: bool
    diff: str


async def _git(*args: str, cwd: str | None) -> tuple[int, str]:
    process = await asyncio.create_subprocess_exec(
        "git",
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
        cwd=cwd,
    )
    stdout, _ = await process.communicate()
    return process.returncode or 0, stdout.decode("utf-8", errors="replace")


async def get_git_diff(cwd: str | None = None) -> GitDiff:
    """Diff of the repository containing `cwd`.

    Returns GitDiff(is_repo=False, diff="") outside a repository or when
    git is not installed.
    """
    try:
        code, out = await _git("rev-parse", "--is-inside-work-tree", cwd=cwd)
        if code != 0 or out.strip() != "true":
            return GitDiff(is_repo=False, diff="")

        _, tracked = await _git("diff", "--color", cwd=cwd)

        _, untracked_list = await _git("ls-files", "--others", "--exclude-standard", cwd=cwd)
        untracked = []
        for path in untracked_list.splitlines():
            if not path:
                continue
            # --no-index exits 1 when the files differ, which is always here
            _, file_diff = await _git("diff", "--color", "--no-index", "--", "/dev/null", path, cwd=cwd)
            untracked.append(file_diff)
    except OSError as e:
        log.warning("git unavailable: %s", e)
        return GitDiff(is_repo=False, diff="")

    return GitDiff(is_repo=True, diff=tracked + "".join(untracked))
