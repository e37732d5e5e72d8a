[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rsheet"
version = "0.1.0"
description = "A multi-user spreadsheet server with cell expressions and dependency propagation"
requires-python = ">=3.10"
dependencies = []
keywords = ["spreadsheet", "server", "cells", "expressions"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Spreadsheet",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rsheet = "rsheet.server:main"

[tool.hatch.build.targets.wheel]
packages = ["rsheet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
