[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "macmessages"
version = "0.1.0"
description = "Decoders and helpers for the macOS Messages database: typedstream attributed bodies, edit history and text effects"
requires-python = ">=3.10"
dependencies = []
keywords = ["imessage", "macos", "messages", "typedstream", "chat.db", "plist"]
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
    "Topic :: Communications :: Chat",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["macmessages"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
