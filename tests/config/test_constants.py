from abm_kernel.config.constants import (
    DEFAULT_PARALLEL_WORKERS,
    DEFAULT_SEED,
    DEFAULT_SPACING,
    FIRST_AGENT_ID,
    FLUSH_THRESHOLD,
    MAX_RUN_STEPS,
    RUN_SCHEMA_VERSION,
)


def test_first_agent_id_is_positive_int() -> None:
    assert isinstance(FIRST_AGENT_ID, int) and FIRST_AGENT_ID >= 1


def test_default_seed_is_int() -> None:
    assert isinstance(DEFAULT_SEED, int)


def test_default_spacing_is_positive() -> None:
    assert DEFAULT_SPACING > 0.0


def test_run_limits_are_positive() -> None:
    assert isinstance(MAX_RUN_STEPS, int) and MAX_RUN_STEPS > 0
    assert isinstance(FLUSH_THRESHOLD, int) and FLUSH_THRESHOLD > 0
    assert isinstance(DEFAULT_PARALLEL_WORKERS, int) and DEFAULT_PARALLEL_WORKERS >= 1


def test_run_schema_version_is_positive() -> None:
    assert isinstance(RUN_SCHEMA_VERSION, int) and RUN_SCHEMA_VERSION >= 1
