[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xkit"
version = "0.1.0"
description = "Service building blocks: structured errors, logging, retries, password hashing, PASETO tokens and a transactional outbox/inbox for messaging."
requires-python = ">=3.10"
keywords = [
    "errors",
    "logging",
    "retry",
    "bcrypt",
    "paseto",
    "outbox",
    "inbox",
    "messaging",
    "rabbitmq",
    "grpc",
]
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
    "Topic :: Software Development :: Libraries",
]
dependencies = [
    "bcrypt>=4.0",
    "grpcio>=1.58",
    "pika>=1.3",
    "pynacl>=1.5",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[tool.hatch.build.targets.wheel]
packages = ["xkit"]

[tool.hatch.build.targets.sdist]
include = ["xkit", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
