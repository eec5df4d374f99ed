"""Tests for request scope resolution and table eligibility."""

from stats_planner.catalog import TableKind, TableState
from stats_planner.config import StatisticsConfig
from stats_planner.datasources import InMemoryConnector
from stats_planner.planner import (
    EXCLUDE_PATTERN,
    AnalyzeJobRequest,
    RequestOverrides,
    TargetResolver,
)

from tests.helpers import build_context, make_database, make_table


def _names(targets):
    return [target.qualified_name for target in targets]


def test_all_databases_skips_blacklist(catalog, context):
    catalog.add_database(make_database(1, "sales", [make_table(100, "orders")]))
    catalog.add_database(make_database(2, "Information_Schema", [make_table(200, "tables")]))
    catalog.add_database(make_database(3, "_statistics_", [make_table(300, "column_stats")]))

    targets = TargetResolver(context).resolve(AnalyzeJobRequest.all_databases(), RequestOverrides())

    assert _names(targets) == ["sales.orders"]


def test_explicit_database_ignores_blacklist(catalog, context):
    """The blacklist only narrows catalog-wide requests."""
    catalog.add_database(make_database(2, "sys", [make_table(200, "settings")]))

    targets = TargetResolver(context).resolve(AnalyzeJobRequest.database(2), RequestOverrides())

    assert _names(targets) == ["sys.settings"]


def test_ineligible_tables_are_filtered(catalog, context):
    """Non-native kinds, non-normal states, temporary and empty tables are skipped."""
    tables = [
        make_table(100, "orders"),
        make_table(101, "orders_view", kind=TableKind.VIEW),
        make_table(102, "orders_ext", kind=TableKind.EXTERNAL),
        make_table(103, "orders_mv", kind=TableKind.MATERIALIZED_VIEW),
        make_table(104, "altering", state=TableState.SCHEMA_CHANGE),
        make_table(105, "restoring", state=TableState.RESTORE),
        make_table(106, "scratch", is_temporary=True),
        make_table(107, "empty", row_count=0),
        make_table(108, "unknown_rows", row_count=None),
    ]
    catalog.add_database(make_database(1, "sales", tables))

    targets = TargetResolver(context).resolve(AnalyzeJobRequest.database(1), RequestOverrides())

    assert _names(targets) == ["sales.orders", "sales.orders_mv", "sales.unknown_rows"]


def test_temporary_tables_when_enabled(catalog, stats):
    catalog.add_database(make_database(1, "sales", [make_table(106, "scratch", is_temporary=True)]))
    context = build_context(catalog, stats, StatisticsConfig(enable_temporary_table_collect=True))

    targets = TargetResolver(context).resolve(AnalyzeJobRequest.database(1), RequestOverrides())

    assert _names(targets) == ["sales.scratch"]


def test_exclusion_pattern(catalog, context):
    catalog.add_database(
        make_database(1, "sales", [make_table(100, "orders"), make_table(101, "orders_bak")])
    )
    overrides = RequestOverrides.from_properties({EXCLUDE_PATTERN: "_bak"})

    targets = TargetResolver(context).resolve(AnalyzeJobRequest.database(1), overrides)

    assert _names(targets) == ["sales.orders"]


def test_single_table_carries_requested_columns(catalog, context):
    catalog.add_database(make_database(1, "sales", [make_table(100, "orders")]))
    request = AnalyzeJobRequest.table(1, 100, columns=("id",))

    targets = TargetResolver(context).resolve(request, RequestOverrides())

    assert len(targets) == 1
    assert targets[0].columns == ("id",)
    assert not targets[0].is_external


def test_vanished_objects_resolve_to_nothing(catalog, context):
    catalog.add_database(make_database(1, "sales", [make_table(100, "orders")]))
    resolver = TargetResolver(context)

    assert resolver.resolve(AnalyzeJobRequest.database(9), RequestOverrides()) == []
    assert resolver.resolve(AnalyzeJobRequest.table(1, 999), RequestOverrides()) == []


def test_external_scopes(catalog, context):
    """Federated requests fan out over the connector's databases and tables."""
    connector = InMemoryConnector("lake")
    connector.add_database(
        make_database(
            1,
            "web",
            [
                make_table(10, "events", kind=TableKind.EXTERNAL),
                make_table(11, "sessions", kind=TableKind.EXTERNAL),
            ],
        )
    )
    connector.add_database(make_database(2, "crm", [make_table(20, "leads", kind=TableKind.EXTERNAL)]))
    catalog.register_connector(connector)
    resolver = TargetResolver(context)

    everything = resolver.resolve(AnalyzeJobRequest.external_catalog("lake"), RequestOverrides())
    one_db = resolver.resolve(AnalyzeJobRequest.external_database("lake", "crm"), RequestOverrides())
    one_table = resolver.resolve(
        AnalyzeJobRequest.external_table("lake", "web", "sessions", columns=("id",)),
        RequestOverrides(),
    )

    assert _names(everything) == ["web.events", "web.sessions", "crm.leads"]
    assert all(target.connector is connector for target in everything)
    assert _names(one_db) == ["crm.leads"]
    assert _names(one_table) == ["web.sessions"]
    assert one_table[0].is_external
    assert one_table[0].columns == ("id",)
    assert resolver.resolve(
        AnalyzeJobRequest.external_table("lake", "web", "gone"), RequestOverrides()
    ) == []
