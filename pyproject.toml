[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cardinal"
version = "0.1.0"
description = "Attack-with-defence competition core: configuration, game clock, SQLite stores, JSON responses and a live broadcast hub"
requires-python = ">=3.11"
keywords = ["ctf", "awd", "attack-defence", "competition", "game-clock"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Topic :: Security",
]
dependencies = [
    "tomli-w",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["cardinal"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
