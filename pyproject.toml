[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gitplay"
version = "0.1.0"
description = "An interactive Git playground with a pure-Python repository engine"
requires-python = ">=3.10"
dependencies = []
keywords = ["git", "version-control", "repl", "playground", "learning"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Version Control :: Git",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gitplay = "gitplay.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["gitplay"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
