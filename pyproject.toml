[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "crabnage"
version = "0.1.0"
description = "Instruction decoder and CPU core for a Game Boy style 8-bit processor"
requires-python = ">=3.10"
dependencies = []
keywords = ["emulator", "gameboy", "cpu", "instruction-decoder"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["crabnage"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
