[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dbaasop"
version = "0.4.0"
description = "Resource models, admission validation and reconciliation helpers for database-as-a-service provider accounts, instances and connections."
requires-python = ">=3.10"
dependencies = []
keywords = ["dbaas", "database", "operator", "kubernetes", "validation", "reconciler"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dbaasop"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
