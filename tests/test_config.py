import json
import os
import tomllib

import pytest
import yaml

from lefthook.config import Config, NotFoundError, load
from lefthook.entries import Command, Hook, Remote, Script
from lefthook.repository import Repository

URL = "https://example.com/evilmartians/lefthook"


@pytest.fixture(autouse=True)
def _no_exclude(monkeypatch):
    monkeypatch.delenv("LEFTHOOK_EXCLUDE", raising=False)


@pytest.fixture
def repo(tmp_path):
    root = str(tmp_path)
    return Repository(root_path=root, info_path=os.path.join(root, ".git", "info"))


def write(root, rel, content):
    path = os.path.join(root, *rel.split("/"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(content)


def remote_path(repo, *parts):
    return "/".join([".git", "info", "lefthook-remotes", *parts])


PRE_COMMIT_TESTS = """
pre-commit:
  commands:
    tests:
      run: {run}
"""


@pytest.mark.parametrize(
    "files, run",
    [
        ({".lefthook.yml": PRE_COMMIT_TESTS.format(run="yarn test")}, "yarn test"),
        ({"lefthook.yml": PRE_COMMIT_TESTS.format(run="yarn test")}, "yarn test"),
        (
            {
                ".lefthook.yml": PRE_COMMIT_TESTS.format(run="yarn test1"),
                "lefthook.yml": PRE_COMMIT_TESTS.format(run="yarn test2"),
            },
            "yarn test2",
        ),
    ],
)
def test_global_names(repo, files, run):
    for name, content in files.items():
        write(repo.root_path, name, content)
    assert load(repo) == Config(hooks={"pre-commit": Hook(commands={"tests": Command(run=run)})})


def test_simple_global_and_local(repo):
    write(repo.root_path, "lefthook.yml", PRE_COMMIT_TESTS.format(run="yarn test"))
    write(repo.root_path, "lefthook-local.yml", """
post-commit:
  commands:
    ping-done:
      run: curl -x POST status.com/done
""")
    assert load(repo) == Config(hooks={
        "pre-commit": Hook(commands={"tests": Command(run="yarn test")}),
        "post-commit": Hook(commands={"ping-done": Command(run="curl -x POST status.com/done")}),
    })


def test_with_overrides(repo):
    write(repo.root_path, "lefthook.yml", """
min_version: 0.6.0
source_dir: $HOME/sources
source_dir_local: $HOME/sources_local

pre-commit:
  parallel: true
  commands:
    tests:
      run: bundle exec rspec
      tags: [backend, test]
    lint:
      run: bundle exec rubocop
      glob: "*.rb"
      tags: [backend, linter]
  scripts:
    "format.sh":
      runner: bash
""")
    write(repo.root_path, "lefthook-local.yml", """
min_version: 1.0.0
colors: false

pre-commit:
  commands:
    tests:
      skip: true
    lint:
      run: docker exec -it ruby:2.7 {cmd}
  scripts:
    "format.sh":
      only: true

pre-push:
  commands:
    rubocop:
      run: bundle exec rubocop
      tags: [backend, linter]
""")
    assert load(repo) == Config(
        min_version="1.0.0",
        colors=False,
        source_dir="$HOME/sources",
        source_dir_local="$HOME/sources_local",
        hooks={
            "pre-commit": Hook(
                parallel=True,
                commands={
                    "tests": Command(skip=True, run="bundle exec rspec", tags=["backend", "test"]),
                    "lint": Command(
                        glob="*.rb",
                        run="docker exec -it ruby:2.7 bundle exec rubocop",
                        tags=["backend", "linter"],
                    ),
                },
                scripts={"format.sh": Script(only=True, runner="bash")},
            ),
            "pre-push": Hook(commands={
                "rubocop": Command(run="bundle exec rubocop", tags=["backend", "linter"]),
            }),
        },
    )


SCRIPT = """
pre-push:
  scripts:
    "{name}":
      runner: {runner}
"""


@pytest.mark.parametrize(
    "files, local_runner",
    [
        ({".lefthook.yml": SCRIPT.format(name="global-extend", runner="bash"),
          ".lefthook-local.yml": SCRIPT.format(name="local-extend", runner="bash")}, "bash"),
        ({"lefthook.yml": SCRIPT.format(name="global-extend", runner="bash"),
          ".lefthook-local.yml": SCRIPT.format(name="local-extend", runner="bash")}, "bash"),
        ({"lefthook.yml": SCRIPT.format(name="global-extend", runner="bash"),
          ".lefthook-local.yml": SCRIPT.format(name="local-extend", runner="bash1"),
          "lefthook-local.yml": SCRIPT.format(name="local-extend", runner="bash2")}, "bash2"),
    ],
)
def test_local_names(repo, files, local_runner):
    for name, content in files.items():
        write(repo.root_path, name, content)
    assert load(repo) == Config(hooks={"pre-push": Hook(scripts={
        "global-extend": Script(runner="bash"),
        "local-extend": Script(runner=local_runner),
    })})


def test_extra_hooks(repo):
    write(repo.root_path, "lefthook.yml", """
tests:
  commands:
    tests:
      run: go test ./...

lints:
  scripts:
    "linter.sh":
      runner: bash
""")
    assert load(repo) == Config(hooks={
        "tests": Hook(commands={"tests": Command(run="go test ./...")}),
        "lints": Hook(scripts={"linter.sh": Script(runner="bash")}),
    })


def test_extra_hooks_only_in_local(repo):
    write(repo.root_path, "lefthook.yml", """
colors:
  yellow: '#FFE4B5'
  red: 196
tests:
  commands:
    tests:
      run: go test ./...
""")
    write(repo.root_path, "lefthook-local.yml", """
lints:
  scripts:
    "linter.sh":
      runner: bash
""")
    assert load(repo) == Config(
        colors={"yellow": "#FFE4B5", "red": 196},
        hooks={
            "tests": Hook(commands={"tests": Command(run="go test ./...")}),
            "lints": Hook(scripts={"linter.sh": Script(runner="bash")}),
        },
    )


def test_with_remote(repo):
    write(repo.root_path, "lefthook.yml", f"remote:\n  git_url: {URL}\n")
    write(repo.root_path, remote_path(repo, "lefthook", "lefthook.yml"), """
pre-commit:
  commands:
    lint:
      run: yarn lint
  scripts:
    "test.sh":
      runner: bash
""")
    assert load(repo) == Config(
        remotes=[Remote(git_url=URL)],
        hooks={"pre-commit": Hook(
            commands={"lint": Command(run="yarn lint")},
            scripts={"test.sh": Script(runner="bash")},
        )},
    )


REMOTE_CUSTOM = """
pre-commit:
  commands:
    lint:
      only:
        - merge
        - rebase
      run: yarn lint
  scripts:
    "test.sh":
      skip:
        - merge
      runner: bash
"""


def test_with_remote_and_custom_config_name(repo):
    write(repo.root_path, "lefthook.yml", f"""
remote:
  git_url: {URL}
  ref: v1.0.0
  config: examples/custom.yml

pre-commit:
  only:
    - ref: main
  commands:
    global:
      run: echo 'Global!'
    lint:
      run: this will be overwritten
""")
    write(repo.root_path, remote_path(repo, "lefthook-v1.0.0", "examples", "custom.yml"), REMOTE_CUSTOM)
    assert load(repo) == Config(
        remotes=[Remote(git_url=URL, ref="v1.0.0", configs=["examples/custom.yml"])],
        hooks={"pre-commit": Hook(
            only=[{"ref": "main"}],
            commands={
                "lint": Command(run="yarn lint", only=["merge", "rebase"]),
                "global": Command(run="echo 'Global!'"),
            },
            scripts={"test.sh": Script(runner="bash", skip=["merge"])},
        )},
    )


def test_with_extends(repo):
    write(repo.root_path, "lefthook.yml", f"""
extends:
  - global-extend.yml

remote:
  git_url: {URL}
  config: examples/config.yml

pre-push:
  commands:
    global:
      run: echo global
""")
    write(repo.root_path, "lefthook-local.yml", """
extends:
  - local-extend.yml

pre-push:
  commands:
    local:
      run: echo local
""")
    write(repo.root_path, remote_path(repo, "lefthook", "examples", "config.yml"), """
extends:
  - ../remote-extend.yml

pre-push:
  commands:
    remote:
      run: echo remote
""")
    write(repo.root_path, "global-extend.yml", SCRIPT.format(name="global-extend", runner="bash"))
    write(repo.root_path, "local-extend.yml", SCRIPT.format(name="local-extend", runner="bash"))
    write(repo.root_path, remote_path(repo, "lefthook", "remote-extend.yml"),
          SCRIPT.format(name="remote-extend", runner="bash"))

    assert load(repo) == Config(
        remotes=[Remote(git_url=URL, configs=["examples/config.yml"])],
        extends=["local-extend.yml"],
        hooks={"pre-push": Hook(
            commands={
                "global": Command(run="echo global"),
                "local": Command(run="echo local"),
                "remote": Command(run="echo remote"),
            },
            scripts={
                "global-extend": Script(runner="bash"),
                "local-extend": Script(runner="bash"),
                "remote-extend": Script(runner="bash"),
            },
        )},
    )


def test_with_remotes_config_and_configs(repo):
    write(repo.root_path, "lefthook.yml", f"""
pre-commit:
  only:
    - ref: main
  commands:
    global:
      run: echo 'Global!'
    lint:
      run: this will be overwritten
remotes:
  - git_url: {URL}
    ref: v1.0.0
    config: examples/custom.yml
  - git_url: {URL}
    configs:
      - examples/remote/ping.yml
    ref: v1.5.5
""")
    write(repo.root_path, remote_path(repo, "lefthook-v1.0.0", "examples", "custom.yml"), REMOTE_CUSTOM)
    write(repo.root_path, remote_path(repo, "lefthook-v1.5.5", "examples", "remote", "ping.yml"), """
pre-commit:
  commands:
    ping:
      run: echo pong
""")
    assert load(repo) == Config(
        remotes=[
            Remote(git_url=URL, ref="v1.0.0", configs=["examples/custom.yml"]),
            Remote(git_url=URL, ref="v1.5.5", configs=["examples/remote/ping.yml"]),
        ],
        hooks={"pre-commit": Hook(
            only=[{"ref": "main"}],
            commands={
                "lint": Command(run="yarn lint", only=["merge", "rebase"]),
                "ping": Command(run="echo pong"),
                "global": Command(run="echo 'Global!'"),
            },
            scripts={"test.sh": Script(runner="bash", skip=["merge"])},
        )},
    )


@pytest.mark.parametrize(
    "name, content",
    [
        ("lefthook.yml", "pre-commit:\n  commands:\n    echo:\n      run: echo 1\n"),
        ("lefthook.json", '{"pre-commit": {"commands": {"echo": {"run": "echo 1"}}}}'),
        ("lefthook.toml", '[pre-commit.commands.echo]\nrun = "echo 1"\n'),
    ],
)
def test_formats(repo, name, content):
    write(repo.root_path, name, content)
    assert load(repo) == Config(hooks={"pre-commit": Hook(commands={"echo": Command(run="echo 1")})})


def test_missing_config(repo):
    with pytest.raises(NotFoundError, match="could not be found"):
        load(repo)


def test_missing_extend_file(repo):
    write(repo.root_path, "lefthook.yml", "extends:\n  - nowhere.yml\n")
    with pytest.raises(FileNotFoundError):
        load(repo)


def test_dump_formats(repo, capsys):
    write(repo.root_path, "lefthook.yml", "rc: ~/.rc\npre-commit:\n  commands:\n    echo:\n      run: echo 1\n")
    config = load(repo)

    as_json = config.dump(as_json=True)
    assert json.loads(as_json) == {"rc": "~/.rc", "pre-commit": {"commands": {"echo": {"run": "echo 1"}}}}
    assert capsys.readouterr().out == as_json

    as_yaml = config.dump()
    assert yaml.safe_load(as_yaml) == json.loads(as_json)

    as_toml = config.dump(as_toml=True)
    assert tomllib.loads(as_toml) == json.loads(as_json)


def test_dump_keeps_custom_source_dir():
    text = Config(source_dir="src", hooks={"x": Hook(scripts={"a.sh": Script()})}).dump(as_json=True)
    assert json.loads(text) == {"source_dir": "src", "x": {"scripts": {"a.sh": {"runner": ""}}}}