# src/focus_radar/core/errors.py

from __future__ import annotations


class ValidationError(ValueError):
    """Caller bug: duplicate id, blank title, negative hours."""


class PersistenceError(RuntimeError):
    """Read or write to the local store failed."""


class AnalysisFailed(RuntimeError):
    """
    The review collaborator could not be reached or returned an unusable payload.

    Transport errors, timeouts and schema violations all collapse into this one
    condition; the core never tries to salvage a partial response.
    """
