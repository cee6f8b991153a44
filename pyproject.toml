[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rollmempool"
version = "0.1.0"
description = "A priority transaction mempool with an LRU seen-transaction cache, eviction and TTL expiry."
requires-python = ">=3.10"
dependencies = []
keywords = ["mempool", "blockchain", "transactions", "abci", "lru", "priority"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rollmempool"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
