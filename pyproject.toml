[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lunarkit"
version = "0.1.0"
description = "Building blocks of a Lua 5.2 runtime: pattern matching, string and table libraries, hybrid tables, chunk loading and a slab allocator"
requires-python = ">=3.10"
dependencies = []
keywords = ["lua", "patterns", "bytecode", "hash-table", "string-interning", "slab-allocator"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lunarkit"]

[tool.pytest.ini_options]
addopts = "-ra"
