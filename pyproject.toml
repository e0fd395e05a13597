[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "xargskit"
version = "0.7.0"
description = "Build and run command lines from arguments read on standard input"
requires-python = ">=3.10"
dependencies = []
keywords = ["xargs", "command-line", "shell", "arguments"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xargs = "xargskit.cli:main"

[tool.setuptools.packages.find]
include = ["xargskit*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
