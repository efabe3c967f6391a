[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nydmv"
version = "0.1.0"
description = "Client, command-line tool and Telegram bot for New York DMV appointment reservations"
requires-python = ">=3.10"
dependencies = [
    "requests",
]
keywords = ["dmv", "new-york", "appointments", "reservations", "telegram", "bot"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
nydmv = "nydmv.cli:main"
nydmv-bot = "nydmv.bot:main"

[tool.hatch.build.targets.wheel]
packages = ["nydmv"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
