[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "traptools"
version = "0.1.0"
description = "Read, decode and dump TRaP randomization metadata from ELF binaries"
requires-python = ">=3.10"
dependencies = []
keywords = ["trap", "elf", "txtrp", "relocations", "leb128", "binary analysis"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Environment :: Console",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
trapdump = "traptools.dump:main"

[tool.hatch.build.targets.wheel]
packages = ["traptools"]

[tool.pytest.ini_options]
addopts = "-ra"
