[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lanmouse"
version = "0.10.0"
description = "Frontend IPC, binary network protocol and frontend state model for a LAN mouse and keyboard sharing service"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "kvm",
    "mouse",
    "keyboard",
    "input-sharing",
    "ipc",
    "json-lines",
    "lan",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
lanmouse-frontend = "lanmouse.app:main"

[tool.hatch.build.targets.wheel]
packages = ["lanmouse"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
