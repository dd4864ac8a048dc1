"""A git repository: paths, file lists, stashing, remotes and state."""

from __future__ import annotations

import logging
import os
import re
import stat
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from .gitexec import GitCommandError, OsExec

logger = logging.getLogger(__name__)

STASH_MESSAGE = "lefthook auto backup"
UNSTAGED_PATCH_NAME = "lefthook-unstaged.patch"
REMOTES_FOLDER = "lefthook-remotes"

NIL_STEP = ""
MERGE_STEP = "merge"
REBASE_STEP = "rebase"

_INFO_DIR_MODE = 0o775
_REMOTES_FOLDER_MODE = 0o755
_MIN_STATUS_LEN = 3

_HEAD_BRANCH_RE = re.compile(r"HEAD -> (?P<name>.*)$")
_REF_BRANCH_RE = re.compile(r"^ref:\s*refs/heads/(.+)$")
_STASH_RE = re.compile(r"^(?P<stash>[^ ]+):\s*" + re.escape(STASH_MESSAGE))

CMD_PUSH_FILES_BASE = ("git", "diff", "--name-only", "HEAD", "@{push}")
CMD_PUSH_FILES_HEAD = ("git", "diff", "--name-only", "HEAD")
CMD_STAGED_FILES = ("git", "diff", "--name-only", "--cached", "--diff-filter=ACMR")
CMD_STATUS_SHORT = ("git", "status", "--short")
CMD_LIST_STASH = ("git", "stash", "list")
CMD_ROOT_PATH = ("git", "rev-parse", "--show-toplevel")
CMD_HOOKS_PATH = ("git", "rev-parse", "--git-path", "hooks")
CMD_INFO_PATH = ("git", "rev-parse", "--git-path", "info")
CMD_GIT_PATH = ("git", "rev-parse", "--git-dir")
CMD_ALL_FILES = ("git", "ls-files", "--cached")
CMD_CREATE_STASH = ("git", "stash", "create")
CMD_STAGE_FILES = ("git", "add")
CMD_REMOTES = ("git", "branch", "--remotes")
CMD_HIDE_UNSTAGED = ("git", "checkout", "--force", "--")


class _Exec(Protocol):
    def set_root_path(self, root: str) -> None: ...

    def cmd(self, args: Sequence[str]) -> str: ...

    def cmd_lines(self, args: Sequence[str]) -> list[str]: ...


@dataclass(frozen=True)
class State:
    """The branch checked out and the step (merge, rebase) in progress."""

    branch: str = ""
    step: str = NIL_STEP


def _go_ext(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def _go_base(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def remote_directory_name(url: str, ref: str) -> str:
    """Directory name under the remotes folder for a remote url and ref."""
    ext = _go_ext(url)
    trimmed = url[: -len(ext)] if ext and url.endswith(ext) else url
    name = _go_base(trimmed)
    if ref:
        name = f"{name}-{ref}"
    return name


def _missing(path: str) -> bool:
    try:
        os.stat(path)
    except FileNotFoundError:
        return True
    except OSError:
        return False
    return False


@dataclass
class Repository:
    """A git repository and the commands lefthook runs against it."""

    git: _Exec = field(default_factory=OsExec)
    root_path: str = ""
    hooks_path: str = ""
    git_path: str = ""
    info_path: str = ""
    _head_branch: str = field(default="", init=False, repr=False, compare=False)

    @classmethod
    def discover(cls, git: _Exec | None = None) -> Repository:
        """Locate the repository the current directory belongs to.

        Raises GitCommandError if git cannot describe a repository here.
        """
        git = git if git is not None else OsExec()

        root_path = git.cmd(CMD_ROOT_PATH)

        hooks_path = git.cmd(CMD_HOOKS_PATH)
        candidate = os.path.join(root_path, hooks_path)
        if os.path.isdir(candidate):
            hooks_path = candidate

        info_path = os.path.normpath(git.cmd(CMD_INFO_PATH))
        if not os.path.isdir(info_path):
            os.mkdir(info_path, _INFO_DIR_MODE)

        git_path = git.cmd(CMD_GIT_PATH)
        if not os.path.isabs(git_path):
            git_path = os.path.join(root_path, git_path)

        git.set_root_path(root_path)

        return cls(
            git=git,
            root_path=root_path,
            hooks_path=hooks_path,
            git_path=git_path,
            info_path=info_path,
        )

    @property
    def unstaged_patch_path(self) -> str:
        return os.path.join(self.info_path, UNSTAGED_PATCH_NAME)

    def staged_files(self) -> list[str]:
        """Files staged for commit."""
        return self.files_by_command(CMD_STAGED_FILES)

    def all_files(self) -> list[str]:
        """All files tracked in the repository."""
        return self.files_by_command(CMD_ALL_FILES)

    def push_files(self) -> list[str]:
        """Files that differ between HEAD and the push target."""
        try:
            return self.files_by_command(CMD_PUSH_FILES_BASE)
        except (GitCommandError, OSError):
            pass

        if not self._head_branch:
            for branch in self.git.cmd_lines(CMD_REMOTES):
                found = _HEAD_BRANCH_RE.search(branch)
                if found:
                    self._head_branch = found.group("name")
                    break

        return self.files_by_command([*CMD_PUSH_FILES_HEAD, self._head_branch])

    def partially_staged_files(self) -> list[str]:
        """Files that have both staged and unstaged changes."""
        partially_staged = []
        for line in self.git.cmd_lines(CMD_STATUS_SHORT):
            if len(line) < _MIN_STATUS_LEN:
                continue

            index, working_tree = line[0], line[1]
            filename = line[3:]
            arrow = filename.find("->")
            if arrow != -1:
                filename = filename[arrow + 3 :]

            if index not in " ?" and working_tree not in " ?" and filename:
                partially_staged.append(filename)

        return partially_staged

    def save_unstaged(self, files: Sequence[str]) -> None:
        """Write the unstaged changes of the files to a patch."""
        self.git.cmd(
            [
                "git",
                "diff",
                "--binary",
                "--unified=0",
                "--no-color",
                "--no-ext-diff",
                "--src-prefix=a/",
                "--dst-prefix=b/",
                "--patch",
                "--submodule=short",
                "--output",
                self.unstaged_patch_path,
                "--",
                *files,
            ]
        )

    def hide_unstaged(self, files: Sequence[str]) -> None:
        """Drop unstaged changes of the files from the working tree."""
        self.git.cmd([*CMD_HIDE_UNSTAGED, *files])

    def restore_unstaged(self) -> None:
        """Apply the saved unstaged patch, if any, and remove it."""
        patch = self.unstaged_patch_path
        if not os.path.exists(patch):
            return

        self.git.cmd(
            [
                "git",
                "apply",
                "-v",
                "--whitespace=nowarn",
                "--recount",
                "--unidiff-zero",
                patch,
            ]
        )
        os.remove(patch)

    def stash_unstaged(self) -> None:
        """Store a backup stash of the working tree."""
        stash_hash = self.git.cmd(CMD_CREATE_STASH)
        self.git.cmd(["git", "stash", "store", "--quiet", "--message", STASH_MESSAGE, stash_hash])

    def drop_unstaged_stash(self) -> None:
        """Drop every lefthook backup stash, oldest first."""
        for line in reversed(self.git.cmd_lines(CMD_LIST_STASH)):
            found = _STASH_RE.match(line)
            if found and found.group("stash"):
                self.git.cmd(["git", "stash", "drop", "--quiet", found.group("stash")])

    def add_files(self, files: Sequence[str]) -> None:
        """Stage the given files."""
        if not files:
            return
        self.git.cmd([*CMD_STAGE_FILES, *files])

    def files_by_command(self, command: Sequence[str]) -> list[str]:
        """Run a git command and return the regular files it lists."""
        return self._extract_files(self.git.cmd_lines(command))

    def _extract_files(self, lines: Sequence[str]) -> list[str]:
        files = []
        for line in lines:
            name = line.strip()
            if name and self._is_file(name):
                files.append(name)
        return files

    def _is_file(self, path: str) -> bool:
        if not path.startswith(self.root_path):
            path = os.path.join(self.root_path, path)
        try:
            info = os.stat(path)
        except FileNotFoundError:
            return False
        return not stat.S_ISDIR(info.st_mode)

    def remotes_folder(self) -> str:
        """Folder that holds cloned remote config repositories."""
        return os.path.join(self.info_path, REMOTES_FOLDER)

    def remote_folder(self, url: str, ref: str) -> str:
        """Folder where the remote repository for url and ref lives."""
        return os.path.join(self.remotes_folder(), remote_directory_name(url, ref))

    def sync_remote(self, url: str, ref: str) -> None:
        """Clone the remote config repository, or update it if already cloned."""
        remotes_path = self.remotes_folder()
        os.makedirs(remotes_path, _REMOTES_FOLDER_MODE, exist_ok=True)

        directory_name = remote_directory_name(url, ref)
        remote_path = os.path.join(remotes_path, directory_name)

        try:
            os.stat(remote_path)
        except OSError:
            self._clone_remote(remotes_path, directory_name, url, ref)
        else:
            self._update_remote(remote_path, ref)

    def _update_remote(self, path: str, ref: str) -> None:
        logger.debug("Updating remote config repository: %s", path)
        if ref:
            self.git.cmd(["git", "-C", path, "fetch", "--quiet", "--depth", "1", "origin", ref])
            self.git.cmd(["git", "-C", path, "checkout", "FETCH_HEAD"])
        else:
            self.git.cmd(["git", "-C", path, "pull", "--quiet"])

    def _clone_remote(self, dest: str, directory_name: str, url: str, ref: str) -> None:
        logger.debug("Cloning remote config repository: %s/%s", dest, directory_name)
        command = ["git", "-C", dest, "clone", "--quiet", "--depth", "1"]
        if ref:
            command += ["--branch", ref]
        command += [url, directory_name]
        self.git.cmd(command)

    def state(self) -> State:
        """Current branch and merge/rebase step."""
        branch = self.branch()
        if self._is_merge_state():
            return State(branch, MERGE_STEP)
        if self._is_rebase_state():
            return State(branch, REBASE_STEP)
        return State(branch, NIL_STEP)

    def branch(self) -> str:
        """Name of the checked-out branch, or an empty string."""
        head_file = os.path.join(self.git_path, "HEAD")
        try:
            with open(head_file, encoding="utf-8", errors="replace") as handle:
                lines = handle.read().splitlines()
        except OSError:
            return ""

        for line in lines:
            found = _REF_BRANCH_RE.match(line)
            if found:
                return found.group(1)
        return ""

    def _is_merge_state(self) -> bool:
        return not _missing(os.path.join(self.git_path, "MERGE_HEAD"))

    def _is_rebase_state(self) -> bool:
        return not (
            _missing(os.path.join(self.git_path, "rebase-merge"))
            and _missing(os.path.join(self.git_path, "rebase-apply"))
        )