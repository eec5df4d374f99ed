"""Builders for catalog and statistics fixtures."""

from datetime import datetime, timedelta
from typing import List, Optional

from stats_planner.catalog import Catalog, Column, DataType, Database, Partition, Table
from stats_planner.config import PlannerConfig, StatisticsConfig
from stats_planner.planner import PlannerContext
from stats_planner.statistics import InMemoryStatsMetaStore

NOW = datetime(2024, 5, 1, 12, 0, 0)
GIB = 1024 * 1024 * 1024
MIB = 1024 * 1024


def hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


def make_columns() -> List[Column]:
    return [
        Column(name="id", data_type=DataType.BIGINT, nullable=False),
        Column(name="name", data_type=DataType.VARCHAR),
        Column(name="amount", data_type=DataType.DECIMAL),
        Column(name="payload", data_type=DataType.JSON),
    ]


def make_partition(
    partition_id: int,
    updated: datetime,
    size: int = 10 * MIB,
    rows: int = 100,
    has_data: bool = True,
) -> Partition:
    return Partition(
        id=partition_id,
        name=f"p{partition_id}",
        update_time=updated,
        data_size=size,
        row_count=rows,
        has_data=has_data,
    )


def make_table(
    table_id: int,
    name: str,
    partitions: Optional[List[Partition]] = None,
    **kwargs,
) -> Table:
    if partitions is None:
        partitions = [make_partition(table_id * 10 + 1, hours_ago(1))]
    kwargs.setdefault("row_count", sum(p.row_count for p in partitions))
    kwargs.setdefault("columns", make_columns())
    return Table(id=table_id, name=name, partitions=partitions, **kwargs)


def make_database(db_id: int, name: str, tables: List[Table]) -> Database:
    database = Database(id=db_id, name=name)
    for table in tables:
        database.add_table(table)
    return database


def build_context(
    catalog: Catalog,
    stats: InMemoryStatsMetaStore,
    config: Optional[StatisticsConfig] = None,
    max_workers: int = 1,
) -> PlannerContext:
    return PlannerContext(
        catalog=catalog,
        stats=stats,
        config=config or StatisticsConfig(),
        planner=PlannerConfig(max_workers=max_workers),
        clock=lambda: NOW,
    )
