"""Git hook names and the file placeholders a runner may contain."""

from __future__ import annotations

CHECKSUM_FILE_NAME = "lefthook.checksum"
"""Name of the file that records which config the hooks were installed from."""

GHOST_HOOK_NAME = "prepare-commit-msg"
"""Hook that is always installed to keep hooks in sync; its output is hidden."""

# The hooks documented by git, in the order they are installed and reported.
AVAILABLE_HOOKS: tuple[str, ...] = tuple(
    """
    pre-commit pre-push commit-msg applypatch-msg fsmonitor-watchman
    p4-changelist p4-post-changelist p4-pre-submit p4-prepare-changelist
    post-applypatch post-checkout post-commit post-index-change post-merge
    post-receive post-rewrite post-update pre-applypatch pre-auto-gc
    pre-merge-commit pre-rebase pre-receive prepare-commit-msg proc-receive
    push-to-checkout rebase reference-transaction sendemail-validate update
    """.split()
)
_HOOK_SET = frozenset(AVAILABLE_HOOKS)

SUB_FILES = "{files}"
SUB_ALL_FILES = "{all_files}"
SUB_STAGED_FILES = "{staged_files}"
SUB_PUSH_FILES = "{push_files}"

_EXCLUSIVE_PLACEHOLDERS = (SUB_STAGED_FILES, SUB_PUSH_FILES)


def hook_uses_staged_files(hook: str) -> bool:
    """Tell whether the hook runs against the staged files."""
    return hook == "pre-commit"


def hook_uses_push_files(hook: str) -> bool:
    """Tell whether the hook runs against the files about to be pushed."""
    return hook == "pre-push"


def hook_available(hook: str) -> bool:
    """Tell whether the name is one of git's own hooks."""
    return hook in _HOOK_SET


def is_runner_files_compatible(runner: str) -> bool:
    """Tell whether the runner avoids mixing staged and push file placeholders."""
    return not all(placeholder in runner for placeholder in _EXCLUSIVE_PLACEHOLDERS)