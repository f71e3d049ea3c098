[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sysquery"
version = "0.1.0"
description = "Run SQL with SQLite, store the latest results of scheduled queries and diff them between runs"
requires-python = ">=3.10"
dependencies = []
keywords = ["sql", "sqlite", "monitoring", "scheduled queries", "diff", "key-value store"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sysquery"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
