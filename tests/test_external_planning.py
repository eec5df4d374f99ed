"""Planning tests for tables served by federated catalog connectors."""

import logging
from datetime import timedelta

import pytest

from stats_planner.catalog import Column, DataType, Table, TableKind
from stats_planner.datasources import ConnectorError, InMemoryConnector
from stats_planner.planner import (
    AUTO_COLLECT_INTERVAL,
    AnalyzeJobRequest,
    AnalyzeMethod,
    CollectJobFactory,
    JobMethod,
)
from stats_planner.statistics import (
    ConnectorColumnStats,
    ExternalBasicStatsMeta,
    InMemoryStatsMetaStore,
)

from tests.helpers import build_context, hours_ago, make_database, make_partition, make_table


def external_table(table_id, name, partitions=None, partitioned=True, **kwargs):
    kwargs.setdefault("kind", TableKind.EXTERNAL)
    if partitioned:
        kwargs.setdefault("partition_columns", ["dt"])
    return make_table(table_id, name, partitions, **kwargs)


def register(catalog, tables, connector=None, db_name="web"):
    connector = connector or InMemoryConnector("lake")
    connector.add_database(make_database(1, db_name, tables))
    catalog.register_connector(connector)
    return connector


def collected(stats, table_name, updated, db_name="web"):
    stats.add_external_basic_stats_meta(
        ExternalBasicStatsMeta("lake", db_name, table_name, updated)
    )


class FailingUpdateTimeConnector(InMemoryConnector):
    """Connector whose update time lookup always fails."""

    def get_table_update_time(self, db_name, table):
        raise RuntimeError("metastore unavailable")


class BrokenTrackingConnector(InMemoryConnector):
    """Connector whose partition change lookup raises."""

    def get_changed_partitions(self, db_name, table, since, tolerance_seconds):
        raise ConnectorError("listing partitions timed out")


class PartitionListingFailureConnector(InMemoryConnector):
    """Connector that cannot list the partitions of table `bad`."""

    def list_partition_names(self, db_name, table_name):
        if table_name == "bad":
            raise ConnectorError("metastore timeout")
        return super().list_partition_names(db_name, table_name)


class UnreadableTableConnector(InMemoryConnector):
    """Connector that cannot describe table `bad`."""

    def get_table(self, db_name, table_name):
        if table_name.lower() == "bad":
            raise ConnectorError("metastore timeout")
        return super().get_table(db_name, table_name)


class StaticCatalogConnector(InMemoryConnector):
    """Connector advertising no optional capability; records every lookup."""

    def __init__(self, name):
        super().__init__(name)
        self.lookups = []

    def get_capabilities(self):
        return []

    def get_table_update_time(self, db_name, table):
        self.lookups.append("update_time")
        return super().get_table_update_time(db_name, table)

    def get_changed_partitions(self, db_name, table, since, tolerance_seconds):
        self.lookups.append("changed_partitions")
        return super().get_changed_partitions(db_name, table, since, tolerance_seconds)

    def refresh_table(self, db_name, table):
        self.lookups.append("refresh")
        return super().refresh_table(db_name, table)


class UnreadableColumnStatsStore(InMemoryStatsMetaStore):
    """Stats store whose connector column statistics cannot be read."""

    def get_connector_column_statistics(self, *args, **kwargs):
        raise ConnectorError("column statistics unavailable")


class DriftingConnector(InMemoryConnector):
    """Connector whose refreshed schema gained a column."""

    def refresh_table(self, db_name, table):
        self.refreshed.append((db_name, table.name))
        columns = list(table.columns) + [Column("region", DataType.VARCHAR)]
        return Table(
            id=table.id,
            name=table.name,
            columns=columns,
            partitions=table.partitions,
            kind=table.kind,
            row_count=table.row_count,
            partition_columns=table.partition_columns,
        )


def test_never_collected_table_covers_all_partitions(catalog, factory):
    """No stats meta: one EXTERNAL_FULL job over every partition."""
    partitions = [make_partition(2, hours_ago(3)), make_partition(1, hours_ago(30))]
    register(catalog, [external_table(10, "events", partitions)])

    jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert len(jobs) == 1
    job = jobs[0]
    assert job.method == JobMethod.EXTERNAL_FULL
    assert job.catalog_name == "lake"
    assert job.qualified_name == "lake.web.events"
    assert job.partition_names == ("p1", "p2")
    assert job.columns == ("id", "name", "amount")


def test_unpartitioned_table_uses_table_name_as_partition(catalog, factory):
    """Unpartitioned federated tables are collected as a single unit."""
    register(catalog, [external_table(10, "users", partitioned=False)])

    jobs = factory.build_jobs(AnalyzeJobRequest.external_table("lake", "web", "users"))

    assert len(jobs) == 1
    assert jobs[0].partition_names == ("users",)


def test_table_unchanged_since_collection_is_skipped(catalog, stats, factory):
    """Freshness gate applies to federated tables too."""
    register(catalog, [external_table(10, "events", [make_partition(1, hours_ago(5))])])
    collected(stats, "events", hours_ago(2))

    assert factory.build_jobs(AnalyzeJobRequest.external_catalog("lake")) == []


def test_only_changed_partitions_are_collected(catalog, stats, factory):
    """Incremental collection lists the partitions changed after the watermark."""
    partitions = [
        make_partition(1, hours_ago(30)),
        make_partition(2, hours_ago(1)),
        make_partition(3, hours_ago(0.5)),
    ]
    register(catalog, [external_table(10, "events", partitions)])
    collected(stats, "events", hours_ago(2))

    jobs = factory.build_jobs(AnalyzeJobRequest.external_database("lake", "web"))

    assert len(jobs) == 1
    assert jobs[0].partition_names == ("p2", "p3")


def test_partition_inside_tolerance_window_is_included(catalog, stats, factory):
    """Partitions updated shortly before the watermark still count as changed."""
    watermark = hours_ago(2)
    partitions = [
        make_partition(1, watermark - timedelta(seconds=30)),
        make_partition(2, hours_ago(3)),
    ]
    connector = register(catalog, [external_table(10, "events", partitions)])
    connector.set_table_update_time("web", "events", hours_ago(1))
    collected(stats, "events", watermark)

    jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert [job.partition_names for job in jobs] == [("p1",)]


def test_empty_changed_set_yields_no_job(catalog, stats, factory):
    """A changed table with no changed partition gets no job."""
    partitions = [make_partition(1, hours_ago(5)), make_partition(2, hours_ago(6))]
    connector = register(catalog, [external_table(10, "events", partitions)])
    connector.set_table_update_time("web", "events", hours_ago(1))
    collected(stats, "events", hours_ago(2))

    assert factory.build_jobs(AnalyzeJobRequest.external_catalog("lake")) == []


def test_untracked_partitions_cover_whole_table(catalog, stats, factory):
    """Without change tracking every partition is collected."""
    partitions = [make_partition(1, hours_ago(30)), make_partition(2, hours_ago(1))]
    connector = InMemoryConnector("lake", {"track_changes": False})
    register(catalog, [external_table(10, "events", partitions)], connector)
    collected(stats, "events", hours_ago(2))

    jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert jobs[0].partition_names == ("p1", "p2")


def test_change_lookup_failure_covers_whole_table(catalog, stats, factory):
    """A failing change lookup falls back to every partition."""
    partitions = [make_partition(1, hours_ago(30)), make_partition(2, hours_ago(1))]
    register(
        catalog,
        [external_table(10, "events", partitions)],
        BrokenTrackingConnector("lake"),
    )
    collected(stats, "events", hours_ago(2))

    jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert jobs[0].partition_names == ("p1", "p2")


def test_unknown_update_time_defers_to_interval(catalog, stats, factory, caplog):
    """A failed update-time lookup is logged and the interval gate decides."""
    table = external_table(10, "logs", partitions=[], partitioned=False, row_count=None)
    register(catalog, [table], FailingUpdateTimeConnector("lake"))
    collected(stats, "logs", hours_ago(2))

    with caplog.at_level(logging.WARNING):
        jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert len(jobs) == 1
    assert "metastore unavailable" in caplog.text

    throttled = AnalyzeJobRequest.external_catalog(
        "lake", properties={AUTO_COLLECT_INTERVAL: "10800"}
    )
    assert factory.build_jobs(throttled) == []


def test_large_table_row_count_uses_large_interval(catalog, stats, factory):
    """Row counts from collected column statistics classify the table."""
    register(catalog, [external_table(10, "events", [make_partition(1, hours_ago(1))])])
    collected(stats, "events", hours_ago(2))
    stats.add_connector_column_stats(
        "lake", "web", "events", ConnectorColumnStats("id", row_count=50_000_000)
    )

    assert factory.build_jobs(AnalyzeJobRequest.external_catalog("lake")) == []


def test_small_table_row_count_uses_small_interval(catalog, stats, factory):
    register(catalog, [external_table(10, "events", [make_partition(1, hours_ago(1))])])
    collected(stats, "events", hours_ago(2))
    stats.add_connector_column_stats(
        "lake", "web", "events", ConnectorColumnStats("name", row_count=1_000)
    )

    assert len(factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))) == 1


@pytest.mark.parametrize("method", [AnalyzeMethod.SAMPLE, AnalyzeMethod.HISTOGRAM])
def test_non_full_methods_are_not_supported(catalog, factory, caplog, method):
    """Federated tables only support FULL collection."""
    register(catalog, [external_table(10, "events")])

    with caplog.at_level(logging.WARNING):
        jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake", method=method))

    assert jobs == []
    assert "Do not support analyze method" in caplog.text


def test_job_uses_refreshed_schema_and_no_properties(catalog, factory):
    """Metadata is refreshed before the job is built."""
    connector = register(catalog, [external_table(10, "events")], DriftingConnector("lake"))

    request = AnalyzeJobRequest.external_table(
        "lake", "web", "events", properties={"priority": "high"}
    )
    jobs = factory.build_jobs(request)

    assert connector.refreshed == [("web", "events")]
    assert jobs[0].columns == ("id", "name", "amount", "region")
    assert jobs[0].column_types[-1] == DataType.VARCHAR
    assert jobs[0].properties == ()


def test_blacklisted_and_empty_tables_are_skipped(catalog, factory):
    """Catalog-wide requests honor the blacklist and empty-table filters."""
    connector = InMemoryConnector("lake")
    connector.add_database(
        make_database(1, "web", [external_table(10, "events"), external_table(11, "stale", row_count=0)])
    )
    connector.add_database(
        make_database(2, "information_schema", [external_table(20, "tables")])
    )
    catalog.register_connector(connector)

    jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert [job.qualified_name for job in jobs] == ["lake.web.events"]


def test_unknown_catalog_plans_nothing(factory):
    """Requests against unregistered catalogs return no jobs."""
    assert factory.build_jobs(AnalyzeJobRequest.external_catalog("missing")) == []


def test_mixed_native_and_federated_objects(catalog, factory):
    """Native and federated requests are planned independently."""
    catalog.add_database(make_database(1, "sales", [make_table(100, "orders")]))
    register(catalog, [external_table(10, "events")])

    native = factory.build_jobs(AnalyzeJobRequest.all_databases())
    federated = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert [job.method for job in native] == [JobMethod.FULL]
    assert [job.method for job in federated] == [JobMethod.EXTERNAL_FULL]


def test_partition_listing_failure_skips_only_that_table(catalog, factory, caplog):
    """A connector error while listing partitions drops one table, not the batch."""
    connector = PartitionListingFailureConnector("lake", {"track_changes": False})
    register(catalog, [external_table(10, "bad"), external_table(11, "good")], connector)

    with caplog.at_level(logging.ERROR):
        jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert [job.table_name for job in jobs] == ["good"]
    assert "metastore timeout" in caplog.text

    failure = [record for record in caplog.records if record.levelno == logging.ERROR][0]
    assert failure.planning["table"] == "web.bad"
    assert failure.planning["catalog"] == "lake"
    assert failure.planning["scope"] == "all_databases"


def test_unreadable_table_is_skipped_during_resolution(catalog, factory, caplog):
    register(
        catalog,
        [external_table(10, "bad"), external_table(11, "good")],
        UnreadableTableConnector("lake"),
    )

    with caplog.at_level(logging.WARNING):
        jobs = factory.build_jobs(AnalyzeJobRequest.external_database("lake", "web"))

    assert [job.table_name for job in jobs] == ["good"]
    assert "Skipping web.bad" in caplog.text


def test_unreadable_row_count_is_treated_as_unknown(catalog, caplog):
    """Column statistics errors fall back to the small-table interval."""
    stats = UnreadableColumnStatsStore()
    register(catalog, [external_table(10, "events", [make_partition(1, hours_ago(1))])])
    collected(stats, "events", hours_ago(2))
    factory = CollectJobFactory(build_context(catalog, stats))

    with caplog.at_level(logging.WARNING):
        jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert [job.partition_names for job in jobs] == [("p1",)]
    assert "column statistics unavailable" in caplog.text


def test_partitions_without_data_are_not_collected(catalog, stats, factory):
    """Changed partitions without data are left out of incremental jobs."""
    partitions = [
        make_partition(1, hours_ago(1)),
        make_partition(2, hours_ago(1), has_data=False),
        make_partition(3, hours_ago(30)),
    ]
    register(catalog, [external_table(10, "events", partitions)])
    collected(stats, "events", hours_ago(2))

    jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert jobs[0].partition_names == ("p1",)


def test_whole_table_job_lists_only_partitions_with_data(catalog, stats, factory):
    partitions = [
        make_partition(1, hours_ago(30)),
        make_partition(2, hours_ago(1), has_data=False),
        make_partition(3, hours_ago(1)),
    ]
    connector = InMemoryConnector("lake", {"track_changes": False})
    register(catalog, [external_table(10, "events", partitions)], connector)
    collected(stats, "events", hours_ago(2))

    jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert jobs[0].partition_names == ("p1", "p3")


def test_connector_without_capabilities_is_not_queried(catalog, stats, factory):
    """Missing capabilities degrade planning instead of calling the connector."""
    partitions = [make_partition(1, hours_ago(30)), make_partition(2, hours_ago(1))]
    connector = register(
        catalog, [external_table(10, "events", partitions)], StaticCatalogConnector("lake")
    )
    collected(stats, "events", hours_ago(2))

    jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert connector.lookups == []
    assert connector.refreshed == []
    assert jobs[0].partition_names == ("p1", "p2")


def test_unknown_update_time_without_capability_defers_to_interval(catalog, stats, factory):
    """A stale-looking table is still planned when update times are unsupported."""
    connector = register(
        catalog,
        [external_table(10, "events", [make_partition(1, hours_ago(30))])],
        StaticCatalogConnector("lake"),
    )
    collected(stats, "events", hours_ago(2))

    jobs = factory.build_jobs(AnalyzeJobRequest.external_catalog("lake"))

    assert [job.partition_names for job in jobs] == [("p1",)]
    assert "update_time" not in connector.lookups
