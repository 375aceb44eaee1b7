"""Exceptions raised by prd-os."""

from __future__ import annotations


class PrdError(Exception):
    """Base class for prd-os errors."""


class NotFoundError(PrdError):
    """A workspace path does not exist."""


class ConfigParseError(PrdError):
    """The workspace config file exists but is not valid JSON."""


class StoryParseError(PrdError):
    """A story file could not be read or its front-matter is malformed."""


class ScaffoldError(PrdError):
    """Workspace or project scaffolding was rejected."""
