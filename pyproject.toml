[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bendlang"
version = "0.1.0"
description = "Core data model for a small functional language: names, patterns, terms, builtin literal encodings, a low-level lexer and diagnostics"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "lexer", "lambda-calculus", "functional", "ast"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bendlang"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
