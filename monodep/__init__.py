"""Dependency consistency checks for JavaScript and TypeScript monorepos."""

__version__ = "0.1.0"
