# services/errors.py
from __future__ import annotations


class BrainnovaError(RuntimeError):
    """Base class for failures the core converts into "no data" or apology text."""


class StoreError(BrainnovaError):
    """The relational store (Supabase) could not be queried."""

    def __init__(self, table: str, message: str):
        super().__init__(f"{table}: {message}")
        self.table = table


class ScoreBackendError(BrainnovaError):
    """The secondary score backend was unreachable or answered garbage."""
