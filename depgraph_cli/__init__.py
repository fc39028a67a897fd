"""Dependency graph engine and CLI for TypeScript codebases."""

__version__ = "1.0.0"
