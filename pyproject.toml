[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "selectchat"
version = "0.1.0"
description = "A small line-based TCP chat server and client with per-channel broadcasting"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "tcp", "selectors", "server", "client", "channels"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
selectchat = "selectchat.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["selectchat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
