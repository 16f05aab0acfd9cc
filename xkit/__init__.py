"""Service building blocks: errors, logging, retries, hashing, tokens and messaging."""

__version__ = "0.1.0"