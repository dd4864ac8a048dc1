# lefthook

A library for Git hook managers. It reads `lefthook` configuration files and
merges them with their extended, remote and local counterparts, decides
whether a hook, command or script is skipped in the current Git state, and
wraps the Git operations a hook runner needs: listing staged, pushed and
partially staged files, saving and restoring unstaged changes, stashing, and
cloning remote config repositories.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `lefthook.gitexec`: `OsExec` runs commands (with `LEFTHOOK=0` in their
  environment) and returns their trimmed output (`cmd`) or its lines
  (`cmd_lines`); a failing command raises `GitCommandError`.
- `lefthook.repository`: `Repository` and `State`.
- `lefthook.config`: `load`, `Config`, `NotFoundError`.
- `lefthook.entries`: `Hook`, `Command`, `Script`, `Remote`, `ConfigError`,
  and the merge helpers `merge_commands`, `merge_scripts`, `build_hook`.
- `lefthook.skip`: `do_skip` and `matches`.
- `lefthook.available`: the list of Git hook names and placeholder checks.
- `lefthook.lfs`: Git LFS helpers.

## Configuration files

`load(repo)` looks in the repository root and merges, in this order:

1. `lefthook` or `.lefthook` (the first found; extensions tried are `.json`,
   `.toml`, `.yaml`, `.yml`). If neither exists, `NotFoundError` is raised.
2. the files listed under `extends` (relative paths are taken from the root)
3. the configs of the repositories listed under `remotes` (and the older
   `remote`), read from the clones under `<info path>/lefthook-remotes`;
   each remote's `configs` (or `config`) default to `lefthook.yml`
4. `lefthook-local` or `.lefthook-local`, then its `extends`

A later file overrides an earlier one. In an override, `{cmd}` in a
command's `run` (or a script's `runner`) stands for the original value:

```yaml
# lefthook.yml
pre-commit:
  parallel: true
  commands:
    lint:
      run: bundle exec rubocop
      glob: "*.rb"
  scripts:
    "format.sh":
      runner: bash
```

```yaml
# lefthook-local.yml
pre-commit:
  commands:
    lint:
      run: docker exec -it ruby:2.7 {cmd}
```

Besides Git's own hooks, any top-level key holding `commands` or `scripts`
becomes a hook. Tags listed in the `LEFTHOOK_EXCLUDE` environment variable
(comma separated) are added to every hook's `exclude_tags`. The deprecated
`remote` and `remotes[].config` options are folded into `remotes` and
`configs`, with a warning logged.

## Usage

```python
from lefthook.gitexec import OsExec
from lefthook.repository import Repository
from lefthook.config import load

repo = Repository.discover(OsExec())
cfg = load(repo)

hook = cfg.hooks["pre-commit"]
hook.validate()                       # ConfigError if piped and parallel
state = repo.state()
if not hook.do_skip(state):
    for name, command in hook.commands.items():
        if not command.do_skip(state):
            print(name, command.run)

print(repo.staged_files())
cfg.dump(as_json=False, as_toml=False)   # YAML on standard output, also returned
```

`Repository` also offers `all_files`, `push_files`,
`partially_staged_files`, `save_unstaged`, `hide_unstaged`,
`restore_unstaged`, `stash_unstaged`, `drop_unstaged_stash`, `add_files`,
`files_by_command`, `branch`, and for remote configs `remotes_folder`,
`remote_folder` and `sync_remote` (clone, or fetch/pull if already cloned).

### Skipping

`skip` and `only` accept `true`/`false`, a Git step (`merge` or
`rebase`), or a list of steps and `{ref: <branch or glob>}` entries:

```python
from lefthook.skip import do_skip
from lefthook.repository import State

do_skip(State(branch="feat/x", step=""), [{"ref": "feat/*"}], None)  # True
```

### Hook names

```python
from lefthook.available import hook_available, is_runner_files_compatible

hook_available("pre-commit")                                    # True
is_runner_files_compatible("lint {staged_files} {push_files}")  # False
```

### Git LFS

`lefthook.lfs.is_lfs_available()` tells whether `git-lfs` is on `PATH`, and
`lefthook.lfs.is_lfs_hook(name)` whether Git LFS handles that hook.

## What this package does not do

There is no command-line tool. The package does not write hook files into
`.git/hooks`, install or uninstall hooks, keep a config checksum, or run the
commands and scripts of a hook; it provides the configuration, skip rules
and Git operations such a tool is built from.