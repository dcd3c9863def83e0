"""Parquet persistence helpers for trajectory and flock-metric streams."""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq


def flush_columns(
    columns: dict[str, list[int | float | str]],
    path: Path,
    writer: pq.ParquetWriter | None,
    schema: pa.Schema,
) -> pq.ParquetWriter | None:
    """Write accumulated rows to Parquet and clear the in-memory buffers.

    The writer is opened lazily on the first non-empty flush and returned so
    the caller can keep appending row groups to the same file.
    """
    if not columns[schema.names[0]]:
        return writer
    table = pa.Table.from_pydict(columns, schema=schema)
    if writer is None:
        writer = pq.ParquetWriter(path, schema)
    writer.write_table(table)
    for values in columns.values():
        values.clear()
    return writer


def empty_columns(schema: pa.Schema) -> dict[str, list[int | float | str]]:
    """Column buffers keyed by the schema's field names."""
    return {name: [] for name in schema.names}


def write_empty_table(path: Path, schema: pa.Schema) -> None:
    """Create a zero-row Parquet file so downstream readers always find one."""
    pq.write_table(schema.empty_table(), path)
