[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pgtypes"
version = "0.1.0"
description = "Encode Python values as PostgreSQL literals and decode PostgreSQL text values back"
requires-python = ">=3.10"
dependencies = []
keywords = ["postgresql", "postgres", "sql", "hstore", "array", "bytea", "types"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pgtypes"]

[tool.pytest.ini_options]
addopts = "-ra"
