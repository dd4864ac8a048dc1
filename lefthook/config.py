"""Loading the lefthook configuration from its files, and dumping it."""

from __future__ import annotations

import copy
import dataclasses
import json
import logging
import os
import re
import sys
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import tomli_w
import yaml

from .available import AVAILABLE_HOOKS
from .entries import ConfigError, Command, Hook, Remote, Script, build_hook
from .repository import Repository

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "lefthook.yml"
DEFAULT_SOURCE_DIR = ".lefthook"
DEFAULT_SOURCE_DIR_LOCAL = ".lefthook-local"

_GLOBAL_NAMES = ("lefthook", ".lefthook")
_LOCAL_NAMES = ("lefthook-local", ".lefthook-local")
_EXTENSIONS = ("json", "toml", "yaml", "yml")
_DUMP_INDENT = 2

# Fields written by ``dump`` even when empty, per entry type.
_ALWAYS_YAML = {Command: {"run"}, Script: {"runner"}, Remote: {"git_url"}}
_ALWAYS_JSON = {Command: {"run"}, Script: {"runner"}, Remote: set()}


class NotFoundError(FileNotFoundError):
    """None of the expected config files exist."""


def _lower_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key).lower(): _lower_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def _parse(path: str) -> dict[str, Any]:
    ext = os.path.splitext(path)[1].lstrip(".").lower()
    with open(path, encoding="utf-8") as handle:
        text = handle.read()
    try:
        if ext == "json":
            data = json.loads(text) if text.strip() else {}
        elif ext == "toml":
            data = tomllib.loads(text)
        elif ext in ("yaml", "yml"):
            data = yaml.safe_load(text)
        else:
            raise ConfigError(f"Unsupported Config Type {ext!r}")
    except (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"While parsing config {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"While parsing config {path}: expected a map")
    return _lower_keys(data)


def _find(root: str, name: str) -> str | None:
    for ext in _EXTENSIONS:
        path = os.path.join(root, f"{name}.{ext}")
        if os.path.isfile(path):
            return path
    return None


def _read_one(root: str, names: tuple[str, ...]) -> dict[str, Any]:
    for name in names:
        path = _find(root, name)
        if path is not None:
            return _parse(path)
    quoted = " ".join(f'"{name}"' for name in names)
    raise NotFoundError(f'No config files with names [{quoted}] could not be found in "{root}"')


def _merge(target: Mapping[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    """Merge source into a copy of target; a value of another type does not override."""
    result = copy.deepcopy(dict(target))
    for key, value in source.items():
        if key not in result:
            result[key] = copy.deepcopy(value)
            continue
        current = result[key]
        if current is not None and type(current) is not type(value):
            continue
        if isinstance(current, Mapping):
            result[key] = _merge(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _string_slice(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def _extend(settings: dict[str, Any], root: str) -> dict[str, Any]:
    for path in _string_slice(settings.get("extends")):
        if not os.path.isabs(path):
            path = os.path.join(root, path)
        settings = _merge(settings, _parse(path))
    return settings


def _remotes_of(settings: Mapping[str, Any]) -> list[Remote]:
    raw = settings.get("remotes")
    if raw is None:
        remotes = []
    elif isinstance(raw, list):
        remotes = [Remote.from_mapping(item) for item in raw]
    else:
        raise ConfigError(f"'remotes' expected a list, got {type(raw).__name__}")
    if settings.get("remote") is not None:
        remotes.append(Remote.from_mapping(settings["remote"]))
    return remotes


def _merge_remotes(repo: Repository, settings: dict[str, Any]) -> dict[str, Any]:
    for remote in _remotes_of(settings):
        if not remote.configured():
            continue
        configs = list(remote.configs)
        if remote.config:
            configs.append(remote.config)
        if not configs:
            configs.append(DEFAULT_CONFIG_NAME)

        for config_file in configs:
            config_path = os.path.join(repo.remote_folder(remote.git_url, remote.ref), config_file)
            logger.debug("Merging remote config: %s: %s", remote.git_url, config_path)
            if not os.path.exists(config_path):
                continue
            settings = _merge(settings, _parse(config_path))
            settings = _extend(settings, os.path.dirname(config_path))

        settings["extends"] = None
    return settings


def _merge_all(repo: Repository) -> dict[str, Any]:
    settings = _read_one(repo.root_path, _GLOBAL_NAMES)
    settings = _extend(settings, repo.root_path)
    settings = _merge_remotes(repo, settings)
    for name in _LOCAL_NAMES:
        path = _find(repo.root_path, name)
        if path is not None:
            settings = _merge(settings, _parse(path))
            break
    return _extend(settings, repo.root_path)


def _sub(settings: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = settings.get(key)
    return value if isinstance(value, Mapping) else None


def _looks_like_hook(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    for key in ("commands", "scripts"):
        if key in value:
            section = value[key]
            if not isinstance(section, Mapping) or section:
                return True
    return False


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "t", "true")
    return bool(value)


@dataclass
class Config:
    """The merged lefthook configuration."""

    min_version: str = ""
    source_dir: str = DEFAULT_SOURCE_DIR
    source_dir_local: str = DEFAULT_SOURCE_DIR_LOCAL
    rc: str = ""
    skip_output: Any = None
    extends: list[str] = field(default_factory=list)
    no_tty: bool = False
    assert_lefthook_installed: bool = False
    colors: Any = None
    remote: Remote | None = None
    remotes: list[Remote] = field(default_factory=list)
    hooks: dict[str, Hook] = field(default_factory=dict)

    def dump(self, as_json: bool = False, as_toml: bool = False) -> str:
        """Write the config to stdout as YAML, JSON or TOML and return the text."""
        always = _ALWAYS_JSON if as_json else _ALWAYS_YAML
        res: dict[str, Any] = {}
        for name in ("min_version", "source_dir", "source_dir_local", "rc", "skip_output",
                     "extends", "no_tty", "assert_lefthook_installed", "colors",
                     "remote", "remotes"):
            value = getattr(self, name)
            if name in ("source_dir", "source_dir_local") or not _is_empty(value):
                res[name] = _plain(value, always)
        if self.source_dir == DEFAULT_SOURCE_DIR:
            res.pop("source_dir", None)
        if self.source_dir_local == DEFAULT_SOURCE_DIR_LOCAL:
            res.pop("source_dir_local", None)
        for hook_name, hook in self.hooks.items():
            res[hook_name] = _plain(hook, always)

        if as_json:
            text = json.dumps(res, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
        elif as_toml:
            text = tomli_w.dumps(res)
        else:
            text = yaml.safe_dump(res, indent=_DUMP_INDENT, sort_keys=True, allow_unicode=True)
        sys.stdout.write(text)
        return text


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (str, list, dict, tuple)) and not value:
        return True
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0


def _plain(value: Any, always: Mapping[type, set[str]]) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        keep = always.get(type(value), set())
        return {
            f.name: _plain(getattr(value, f.name), always)
            for f in dataclasses.fields(value)
            if f.name in keep or not _is_empty(getattr(value, f.name))
        }
    if isinstance(value, Mapping):
        return {str(key): _plain(item, always) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item, always) for item in value]
    return value


def _unmarshal(base: dict[str, Any], extra: dict[str, Any]) -> Config:
    hooks: dict[str, Hook] = {}
    names = list(AVAILABLE_HOOKS)
    names += [key for key in [*base, *extra] if _looks_like_hook((extra if key in extra else base)[key])]
    for name in names:
        if name in hooks:
            continue
        hook = build_hook(_sub(base, name), _sub(extra, name))
        if hook is not None:
            hooks[name] = hook

    merged = _merge(base, extra)
    config = Config(hooks=hooks)
    if "min_version" in merged:
        config.min_version = _text(merged["min_version"])
    if "source_dir" in merged:
        config.source_dir = _text(merged["source_dir"])
    if "source_dir_local" in merged:
        config.source_dir_local = _text(merged["source_dir_local"])
    config.rc = _text(merged.get("rc"))
    config.skip_output = copy.deepcopy(merged.get("skip_output"))
    config.extends = _string_slice(merged.get("extends"))
    config.no_tty = _flag(merged.get("no_tty"))
    config.assert_lefthook_installed = _flag(merged.get("assert_lefthook_installed"))
    config.colors = copy.deepcopy(merged.get("colors"))

    raw_remotes = merged.get("remotes")
    if raw_remotes is not None:
        if not isinstance(raw_remotes, list):
            raise ConfigError(f"'remotes' expected a list, got {type(raw_remotes).__name__}")
        config.remotes = [Remote.from_mapping(item) for item in raw_remotes]
    if merged.get("remote") is not None:
        logger.warning(
            'DEPRECATED: "remote" option is deprecated and will be omitted in the next '
            'major release, use "remotes" option instead'
        )
        config.remotes.append(Remote.from_mapping(merged["remote"]))
    config.remote = None

    for remote in config.remotes:
        if remote.config:
            logger.warning(
                'DEPRECATED: "remotes"."config" option is deprecated and will be omitted '
                'in the next major release, use "configs" option instead'
            )
            remote.configs.append(remote.config)
        remote.config = ""

    return config


def load(repo: Repository) -> Config:
    """Load the config from the repository root, with extends, remotes and local overrides.

    Raises NotFoundError if no main config file exists.
    """
    base = _read_one(repo.root_path, _GLOBAL_NAMES)
    extra = _merge_all(repo)
    return _unmarshal(base, extra)


_HOOK_KEY_RE = re.compile(r"^(?P<hookName>[^.]+)\.(scripts|commands)")