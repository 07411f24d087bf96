"""Git helpers."""

from termchat.git.diff import GitDiff, get_git_diff

__all__ = ["GitDiff", "get_git_diff"]
