[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ormkit"
version = "0.1.0"
description = "Building blocks for an SQL object mapper: ordered callback chains, SQL dialects, error collections, query log formatting and JSON column values."
requires-python = ">=3.10"
dependencies = []
keywords = ["orm", "sql", "dialect", "callbacks", "database", "sqlite", "mysql", "postgresql", "mssql"]
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
    "Topic :: Database :: Front-Ends",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ormkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
