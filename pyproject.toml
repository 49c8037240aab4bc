[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "prbot"
version = "0.1.0"
description = "Building blocks for a pull request review bot: event dispatch, repository filtering, policy-driven reviews and sliding-window rate limiting."
requires-python = ">=3.10"
dependencies = []
keywords = ["pull-request", "code-review", "automation", "rate-limiting", "webhook"]
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
    "Topic :: Software Development :: Version Control :: Git",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["prbot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
