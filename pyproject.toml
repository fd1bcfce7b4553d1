[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pipesim"
version = "1.0.0"
description = "Cycle-level simulator of a five-stage pipelined 8-bit processor with operand forwarding"
requires-python = ">=3.10"
dependencies = []
keywords = ["simulator", "pipeline", "processor", "cpu", "forwarding", "architecture"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pipesim = "pipesim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["pipesim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
