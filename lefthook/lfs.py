"""Helpers for repositories that use Git LFS."""

from __future__ import annotations

import shutil

LFS_REQUIRED_FILE = ".lfs-required"
LFS_CONFIG_FILE = ".lfsconfig"

# Hooks that git-lfs installs handlers for, in the order git-lfs lists them.
LFS_HOOKS: tuple[str, ...] = tuple(
    "post-checkout post-commit post-merge pre-push".split()
)
_LFS_HOOK_SET = frozenset(LFS_HOOKS)


def is_lfs_available() -> bool:
    """Tell whether a ``git-lfs`` executable can be found on PATH."""
    return bool(shutil.which("git-lfs"))


def is_lfs_hook(hook_name: str) -> bool:
    """Tell whether git-lfs has a handler for the named hook."""
    return hook_name in _LFS_HOOK_SET