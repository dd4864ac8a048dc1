[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lefthook"
version = "0.1.0"
description = "Git hooks manager library: configuration loading and merging, skip rules and repository helpers"
requires-python = ">=3.11"
keywords = ["git", "hooks", "pre-commit", "configuration", "version-control"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Version Control :: Git",
]
dependencies = [
    "pyyaml",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["lefthook"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
