"""Hooks and what they run: commands, scripts, and remote config sources."""

from __future__ import annotations

import copy
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .available import is_runner_files_compatible
from .repository import State
from .skip import do_skip

CMD = "{cmd}"
"""Placeholder in an overriding run/runner replaced with the original one."""

_ENV_EXCLUDE = "LEFTHOOK_EXCLUDE"
_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class ConfigError(ValueError):
    """The configuration is malformed or contradicts itself."""


def _as_str(value: Any, key: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    raise ConfigError(f"'{key}' expected a string, got {type(value).__name__}")


def _as_bool(value: Any, key: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        if value == "" or value in _FALSE_WORDS:
            return False
        if value in _TRUE_WORDS:
            return True
        raise ConfigError(f"'{key}' cannot parse {value!r} as a boolean")
    raise ConfigError(f"'{key}' expected a boolean, got {type(value).__name__}")


def _as_int(value: Any, key: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        if value == "":
            return 0
        try:
            return int(value, 0)
        except ValueError as exc:
            raise ConfigError(f"'{key}' cannot parse {value!r} as an integer") from exc
    raise ConfigError(f"'{key}' expected an integer, got {type(value).__name__}")


def _as_str_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_as_str(item, key) for item in value]
    return [_as_str(value, key)]


def _as_str_map(value: Any, key: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' expected a map, got {type(value).__name__}")
    return {str(name): _as_str(item, f"{key}.{name}") for name, item in value.items()}


def _as_raw(value: Any, _key: str) -> Any:
    return copy.deepcopy(value)


_Converters = Mapping[str, Callable[[Any, str], Any]]


def _decode(data: Any, converters: _Converters, what: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"{what}: expected a map, got {type(data).__name__}")
    return {name: convert(data[name], name) for name, convert in converters.items() if name in data}


def _deep_merge(target: Mapping[str, Any] | None, source: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge source into a copy of target; a value of a different type does not override."""
    result = copy.deepcopy(dict(target or {}))
    for key, value in (source or {}).items():
        if key not in result:
            result[key] = copy.deepcopy(value)
            continue
        current = result[key]
        if current is not None and type(current) is not type(value):
            continue
        if isinstance(current, Mapping):
            result[key] = _deep_merge(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _section(hook: Mapping[str, Any] | None, key: str) -> Mapping[str, Any] | None:
    if hook is None:
        return None
    value = hook.get(key)
    return value if isinstance(value, Mapping) else None


@dataclass
class Command:
    """A command run by a hook."""

    run: str = ""
    skip: Any = None
    only: Any = None
    tags: list[str] = field(default_factory=list)
    glob: str = ""
    files: str = ""
    env: dict[str, str] = field(default_factory=dict)
    root: str = ""
    exclude: str = ""
    priority: int = 0
    fail_text: str = ""
    interactive: bool = False
    use_stdin: bool = False
    stage_fixed: bool = False

    _CONVERTERS = {
        "run": _as_str,
        "skip": _as_raw,
        "only": _as_raw,
        "tags": _as_str_list,
        "glob": _as_str,
        "files": _as_str,
        "env": _as_str_map,
        "root": _as_str,
        "exclude": _as_str,
        "priority": _as_int,
        "fail_text": _as_str,
        "interactive": _as_bool,
        "use_stdin": _as_bool,
        "stage_fixed": _as_bool,
    }

    @classmethod
    def from_mapping(cls, data: Any) -> Command:
        """Build a command from its config mapping, coercing scalar types loosely."""
        return cls(**_decode(data, cls._CONVERTERS, "command"))

    def validate(self) -> None:
        """Raise ConfigError if the run line mixes incompatible file placeholders."""
        if not is_runner_files_compatible(self.run):
            raise ConfigError("One of your runners contains incompatible file types")

    def do_skip(self, state: State) -> bool:
        """Return True if the command is skipped in this git state."""
        return do_skip(state, self.skip, self.only)


@dataclass
class Script:
    """A script file run by a hook through a runner."""

    runner: str = ""
    skip: Any = None
    only: Any = None
    tags: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    fail_text: str = ""
    interactive: bool = False
    use_stdin: bool = False
    stage_fixed: bool = False

    _CONVERTERS = {
        "runner": _as_str,
        "skip": _as_raw,
        "only": _as_raw,
        "tags": _as_str_list,
        "env": _as_str_map,
        "fail_text": _as_str,
        "interactive": _as_bool,
        "use_stdin": _as_bool,
        "stage_fixed": _as_bool,
    }

    @classmethod
    def from_mapping(cls, data: Any) -> Script:
        """Build a script from its config mapping, coercing scalar types loosely."""
        return cls(**_decode(data, cls._CONVERTERS, "script"))

    def do_skip(self, state: State) -> bool:
        """Return True if the script is skipped in this git state."""
        return do_skip(state, self.skip, self.only)


@dataclass
class Hook:
    """A git hook with its commands, scripts and options."""

    commands: dict[str, Command] = field(default_factory=dict)
    scripts: dict[str, Script] = field(default_factory=dict)
    files: str = ""
    parallel: bool = False
    piped: bool = False
    follow: bool = False
    exclude_tags: list[str] = field(default_factory=list)
    skip: Any = None
    only: Any = None

    _CONVERTERS = {
        "files": _as_str,
        "parallel": _as_bool,
        "piped": _as_bool,
        "follow": _as_bool,
        "exclude_tags": _as_str_list,
        "skip": _as_raw,
        "only": _as_raw,
    }

    def validate(self) -> None:
        """Raise ConfigError if both 'piped' and 'parallel' are set."""
        if self.parallel and self.piped:
            raise ConfigError(
                "conflicting options 'piped' and 'parallel' are set to 'true', "
                "remove one of this option from hook group"
            )

    def do_skip(self, state: State) -> bool:
        """Return True if the whole hook is skipped in this git state."""
        return do_skip(state, self.skip, self.only)


@dataclass
class Remote:
    """A git repository that provides extra config files."""

    git_url: str = ""
    ref: str = ""
    config: str = ""
    configs: list[str] = field(default_factory=list)

    _CONVERTERS = {
        "git_url": _as_str,
        "ref": _as_str,
        "config": _as_str,
        "configs": _as_str_list,
    }

    @classmethod
    def from_mapping(cls, data: Any) -> Remote:
        """Build a remote from its config mapping."""
        return cls(**_decode(data, cls._CONVERTERS, "remote"))

    def configured(self) -> bool:
        """Return True if the remote names a repository."""
        return bool(self.git_url)


def _commands_from(section: Mapping[str, Any] | None) -> dict[str, Command]:
    if section is None:
        return {}
    return {name: Command.from_mapping(data) for name, data in section.items()}


def _scripts_from(section: Mapping[str, Any] | None) -> dict[str, Script]:
    if section is None:
        return {}
    return {name: Script.from_mapping(data) for name, data in section.items()}


def merge_commands(
    base: Mapping[str, Any] | None, extra: Mapping[str, Any] | None
) -> dict[str, Command]:
    """Merge the 'commands' of two hook mappings; extra overrides base.

    A '{cmd}' in an overriding run line is replaced with the base run line.
    """
    origin = _section(base, "commands")
    override = _section(extra, "commands")
    if origin is None:
        return _commands_from(override)
    if override is None:
        return _commands_from(origin)

    replaces = {
        name: _as_str(data.get("run"), "run")
        for name, data in origin.items()
        if isinstance(data, Mapping)
    }

    commands = _commands_from(_deep_merge(origin, override))
    for name, run in replaces.items():
        if run:
            commands[name].run = commands[name].run.replace(CMD, run)

    return commands


def merge_scripts(
    base: Mapping[str, Any] | None, extra: Mapping[str, Any] | None
) -> dict[str, Script]:
    """Merge the 'scripts' of two hook mappings; extra overrides base.

    A '{cmd}' in an overriding runner is replaced with the base runner.
    """
    origin = _section(base, "scripts") or {}
    override = _section(extra, "scripts") or {}

    replaces = {name: Script.from_mapping(data).runner for name, data in origin.items()}

    scripts = _scripts_from(_deep_merge(origin, override))
    for name, runner in replaces.items():
        if runner:
            scripts[name].runner = scripts[name].runner.replace(CMD, runner)

    return scripts


def build_hook(base: Mapping[str, Any] | None, extra: Mapping[str, Any] | None) -> Hook | None:
    """Build a hook from its base and overriding mappings; None if neither is given.

    Tags listed in LEFTHOOK_EXCLUDE (comma separated) are added to exclude_tags.
    """
    if base is None and extra is None:
        return None

    for part in (base, extra):
        if part is not None and not isinstance(part, Mapping):
            raise ConfigError(f"hook: expected a map, got {type(part).__name__}")

    commands = merge_commands(base, extra)
    scripts = merge_scripts(base, extra)

    merged = _deep_merge(base, extra)
    hook = Hook(commands=commands, scripts=scripts, **_decode(merged, Hook._CONVERTERS, "hook"))

    tags = os.environ.get(_ENV_EXCLUDE, "")
    if tags:
        hook.exclude_tags.extend(tags.split(","))

    return hook