import pytest

from querybridge.common.errors import InvalidStatusTransitionError
from querybridge.execution import (
    InMemoryQueryExecutionStore,
    QueryExecution,
    QueryStatus,
    SqliteQueryExecutionStore,
    build_query_execution_store,
)
from querybridge_driver_sdk import QueryResult


def _result():
    return QueryResult(columns=["n"], rows=[[1], [2]], row_count=2, native_query="SELECT n FROM numbers")


def test_new_execution_starts_in_starting_state():
    execution = QueryExecution(database_id=1, json_query={"database": 1})

    assert execution.status == QueryStatus.STARTING
    assert execution.id is None
    assert execution.finished_at is None
    assert execution.uuid


def test_complete_records_outcome():
    # Act
    execution = QueryExecution(database_id=1).complete(_result(), running_time_ms=12.7)

    # Assert
    assert execution.status == QueryStatus.COMPLETED
    assert execution.result_rows == 2
    assert execution.running_time == 12
    assert execution.raw_query == "SELECT n FROM numbers"
    assert execution.finished_at is not None


def test_fail_records_error():
    execution = QueryExecution(database_id=1).fail("no such column: ZID", running_time_ms=3)

    assert execution.status == QueryStatus.FAILED
    assert execution.error == "no such column: ZID"


@pytest.mark.parametrize(
    "finish, then",
    [
        (lambda e: e.complete(_result(), 1), lambda e: e.fail("late", 1)),
        (lambda e: e.fail("boom", 1), lambda e: e.complete(_result(), 1)),
        (lambda e: e.complete(_result(), 1), lambda e: e.complete(_result(), 1)),
    ],
)
def test_terminal_states_are_final(finish, then):
    execution = QueryExecution(database_id=1)
    finish(execution)

    with pytest.raises(InvalidStatusTransitionError):
        then(execution)


def test_in_memory_store_inserts_then_updates():
    # Arrange
    store = InMemoryQueryExecutionStore()
    first = store.save(QueryExecution(database_id=1))
    second = store.save(QueryExecution(database_id=1))

    # Act
    first.fail("boom", 1)
    store.save(first)

    # Assert
    assert (first.id, second.id) == (1, 2)
    assert store.get(1).status == QueryStatus.FAILED
    assert store.get(2).status == QueryStatus.STARTING
    assert [e.id for e in store.list_recent()] == [2, 1]


def test_in_memory_store_returns_copies():
    store = InMemoryQueryExecutionStore()
    saved = store.save(QueryExecution(database_id=1))

    saved.fail("not saved yet", 1)

    assert store.get(saved.id).status == QueryStatus.STARTING


def test_sqlite_store_persists_across_instances(tmp_path):
    # Arrange
    path = tmp_path / "executions" / "qe.db"
    store = SqliteQueryExecutionStore(path)
    execution = store.save(QueryExecution(database_id=4, executor_id="tester", json_query={"database": 4}))

    # Act
    execution.complete(_result(), 5)
    store.save(execution)
    store.close()
    reopened = SqliteQueryExecutionStore(path)

    # Assert
    loaded = reopened.get(execution.id)
    assert loaded.uuid == execution.uuid
    assert loaded.status == QueryStatus.COMPLETED
    assert loaded.result_rows == 2
    assert loaded.json_query == {"database": 4}
    assert len(reopened.list_recent()) == 1
    assert reopened.get(999) is None
    reopened.close()


def test_build_store_rejects_unknown_backend():
    assert isinstance(build_query_execution_store("memory"), InMemoryQueryExecutionStore)
    with pytest.raises(ValueError):
        build_query_execution_store("redis")
    with pytest.raises(ValueError):
        build_query_execution_store("sqlite", None)
