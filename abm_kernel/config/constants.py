"""Centralized kernel constants.

Defaults shared by the configuration dataclasses, the driver and the
persistence layer live here rather than as inline literals.
"""

from __future__ import annotations

DEFAULT_SEED = 0
"""Seed used when a model is built without an explicit one."""

FIRST_AGENT_ID = 1
"""First identifier handed out by an agent store."""

DEFAULT_SPACING = 1.0
"""Default bucket edge length of the continuous-space spatial index."""

MAX_RUN_STEPS = 1_000_000
"""Safety cap on steps for predicate-driven runs."""

DEFAULT_PARALLEL_WORKERS = 4
"""Thread count for parallel agent steps."""

FLUSH_THRESHOLD = 8_192
"""Flush collected rows to Parquet once this in-memory row count is reached."""

RUN_SCHEMA_VERSION = 1
"""Version tag written into run metadata."""
