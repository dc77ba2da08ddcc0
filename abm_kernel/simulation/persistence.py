"""Parquet/JSON persistence for collected run data."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from abm_kernel.config.constants import FLUSH_THRESHOLD, RUN_SCHEMA_VERSION
from abm_kernel.config.types import RunConfig
from abm_kernel.io.paths import agent_data_path, logs_dir, model_data_path, run_meta_path
from abm_kernel.simulation.collect import AgentDataSpec, DataCollector, ModelDataSpec
from abm_kernel.simulation.engine import RunResult, StopCondition, iterate
from abm_kernel.simulation.model import Model

logger = logging.getLogger(__name__)


def flush_table(
    table: pa.Table,
    path: Path,
    writer: pq.ParquetWriter | None,
) -> pq.ParquetWriter | None:
    """Append ``table`` to the Parquet file at ``path``, opening the writer lazily.

    Later chunks are cast to the schema of the first non-empty chunk.
    """
    if table.num_rows == 0:
        return writer
    if writer is None:
        writer = pq.ParquetWriter(path, table.schema)
    elif table.schema != writer.schema:
        table = table.cast(writer.schema)
    writer.write_table(table)
    return writer


def _run_meta(model: Model, steps: int) -> dict[str, int]:
    return {
        "schema_version": RUN_SCHEMA_VERSION,
        "seed": model.config.seed,
        "steps": steps,
        "final_time": model.time,
        "n_agents": len(model),
    }


def write_run(result: RunResult, model: Model, out_dir: Path) -> None:
    """Persist ``result`` tables and run metadata under ``out_dir``.

    A table without columns (nothing was requested) is not written.
    """
    out_dir = Path(out_dir)
    logs_dir(out_dir).mkdir(parents=True, exist_ok=True)
    for table, path in (
        (result.agent_table, agent_data_path(out_dir)),
        (result.model_table, model_data_path(out_dir)),
    ):
        if table.num_columns:
            pq.write_table(table, path, row_group_size=FLUSH_THRESHOLD)
    run_meta_path(out_dir).write_text(
        json.dumps(_run_meta(model, result.steps), ensure_ascii=False, indent=2)
    )


def run_to_parquet(
    model: Model,
    until: StopCondition,
    out_dir: Path,
    *,
    agent_data: Sequence[AgentDataSpec] = (),
    model_data: Sequence[ModelDataSpec] = (),
    config: RunConfig | None = None,
    flush_threshold: int = FLUSH_THRESHOLD,
    column_types: Mapping[str, pa.DataType] | None = None,
) -> int:
    """Run ``model`` while streaming collected rows to Parquet.

    Rows are flushed whenever ``flush_threshold`` agent rows are buffered,
    keeping memory bounded for long runs.  The file schema is fixed by the
    first flushed chunk, so inferred integer columns are written as float64;
    declare a column in ``column_types`` to keep it integral.  Returns the
    number of steps taken.
    """
    if flush_threshold < 1:
        raise ValueError("flush_threshold must be >= 1")
    config = config or RunConfig()
    out_dir = Path(out_dir)
    logs_dir(out_dir).mkdir(parents=True, exist_ok=True)
    collector = DataCollector(agent_data, model_data, column_types, widen_integers=True)
    agent_writer: pq.ParquetWriter | None = None
    model_writer: pq.ParquetWriter | None = None
    taken = 0
    try:
        for taken in iterate(model, until, max_steps=config.max_steps):
            if taken > 0 or config.collect_initial:
                collector.collect(model)
            if collector.agent_row_count >= flush_threshold:
                agent_writer = flush_table(
                    collector.drain_agent_table(), agent_data_path(out_dir), agent_writer
                )
            if collector.model_row_count >= flush_threshold:
                model_writer = flush_table(
                    collector.drain_model_table(), model_data_path(out_dir), model_writer
                )
        agent_writer = flush_table(
            collector.drain_agent_table(), agent_data_path(out_dir), agent_writer
        )
        model_writer = flush_table(
            collector.drain_model_table(), model_data_path(out_dir), model_writer
        )
    finally:
        if agent_writer is not None:
            agent_writer.close()
        if model_writer is not None:
            model_writer.close()
    run_meta_path(out_dir).write_text(
        json.dumps(_run_meta(model, taken), ensure_ascii=False, indent=2)
    )
    logger.info("streamed %d steps to %s", taken, out_dir)
    return taken
