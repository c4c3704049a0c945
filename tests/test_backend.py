"""Tests for the backend service layer."""

import threading

import httpx
import pytest
from postgrest.exceptions import APIError

from otcbackend import BackendError, create_service
from otcbackend.rest_service import RestBackendService
from otcbackend.sqlite_service import SQLiteBackendService


class TestSQLiteBackend:
    def test_insert_and_select(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
        db_service.insert("t", [{"id": 1, "name": "alice"}, {"id": 2, "name": "bob"}])
        assert db_service.select("t", order_by="id") == [
            {"id": 1, "name": "alice"},
            {"id": 2, "name": "bob"},
        ]

    def test_select_match_and_order(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY, grp TEXT)")
        db_service.insert("t", [{"id": i, "grp": "a" if i % 2 else "b"} for i in range(1, 6)])
        rows = db_service.select("t", {"grp": "a"}, order_by="id", descending=True)
        assert [r["id"] for r in rows] == [5, 3, 1]

    def test_insert_fills_missing_keys_with_null(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY, val TEXT)")
        db_service.insert("t", [{"id": 1, "val": "x"}, {"id": 2}])
        rows = db_service.select("t", order_by="id")
        assert rows[1] == {"id": 2, "val": None}

    def test_update(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY, val TEXT)")
        db_service.insert("t", [{"id": 1, "val": "old"}, {"id": 2, "val": "keep"}])
        db_service.update("t", {"val": "new"}, {"id": 1})
        rows = db_service.select("t", order_by="id")
        assert [r["val"] for r in rows] == ["new", "keep"]

    def test_delete_match_and_all(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        db_service.insert("t", [{"id": 1}, {"id": 2}, {"id": 3}])
        db_service.delete("t", {"id": 2})
        assert [r["id"] for r in db_service.select("t", order_by="id")] == [1, 3]
        db_service.delete("t")
        assert db_service.select("t") == []

    def test_insert_error_is_backend_error_and_rolled_back(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        with pytest.raises(BackendError):
            db_service.insert("t", [{"id": 1}, {"id": 1}])
        assert db_service.select("t") == []

    def test_rpc_runs_registered_procedure(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY, val TEXT)")
        db_service.register_procedure("set_val", "UPDATE t SET val = :val; SELECT COUNT(*) AS n FROM t")
        db_service.insert("t", [{"id": 1, "val": "a"}, {"id": 2, "val": "b"}])
        assert db_service.rpc("set_val", {"val": "z"}) == [{"n": 2}]
        assert {r["val"] for r in db_service.select("t")} == {"z"}

    def test_rpc_unknown_function(self, db_service):
        with pytest.raises(BackendError) as exc_info:
            db_service.rpc("does_not_exist")
        assert exc_info.value.code == "PGRST202"

    def test_transaction_rollback_on_error(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY, val TEXT)")
        with pytest.raises(ValueError):
            with db_service.transaction():
                db_service.execute("INSERT INTO t (id, val) VALUES (?, ?)", (1, "x"))
                raise ValueError("simulated failure")
        assert db_service.select("t") == []

    def test_requires_transaction(self, db_service):
        with pytest.raises(RuntimeError, match="No active transaction"):
            db_service.execute("SELECT 1")

    def test_concurrent_inserts(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY, val INTEGER)")
        errors = []

        def worker(n):
            try:
                db_service.insert("t", [{"id": n, "val": n * 10}])
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert len(db_service.select("t")) == 4


class TestCreateService:
    def test_sqlite(self, tmp_path):
        assert isinstance(create_service(f"sqlite:///{tmp_path / 'x.db'}"), SQLiteBackendService)

    def test_rest_requires_key(self):
        with pytest.raises(ValueError, match="API key"):
            create_service("https://example.supabase.co")

    def test_rest(self):
        service = create_service("https://example.supabase.co", api_key="k")
        assert isinstance(service, RestBackendService)

    def test_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_service("mysql://nope")


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Query builder recording the chained calls made on it."""

    def __init__(self, client, *steps):
        self.client = client
        self.steps = list(steps)

    def _add(self, *step):
        self.steps.append(step)
        return self

    def select(self, *columns):
        return self._add("select", *columns)

    def insert(self, records):
        return self._add("insert", records)

    def update(self, values):
        return self._add("update", values)

    def delete(self):
        return self._add("delete")

    def eq(self, column, value):
        return self._add("eq", column, value)

    def is_(self, column, value):
        return self._add("is_", column, value)

    def order(self, column, desc=False):
        return self._add("order", column, desc)

    @property
    def not_(self):
        return self._add("not_")

    def execute(self):
        self.client.executed.append(self.steps)
        result = self.client.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return FakeResponse(result)


class FakeClient:
    def __init__(self, results):
        self.results = list(results)
        self.executed = []

    def table(self, name):
        return FakeQuery(self, ("table", name))

    def rpc(self, function, params=None):
        return FakeQuery(self, ("rpc", function, params))


def rest_service(results, **kwargs):
    client = FakeClient(results)
    service = RestBackendService(
        "https://proj.supabase.co/", "secret", client=client, base_delay=0, **kwargs
    )
    service.connect()
    return service, client


class TestRestBackend:
    def test_connect_creates_client(self, monkeypatch):
        created = []
        monkeypatch.setattr(
            "otcbackend.rest_service.create_client",
            lambda url, key, options=None: created.append((url, key, options)) or FakeClient([]),
        )
        service = RestBackendService("https://proj.supabase.co/", "secret", timeout=5)
        service.connect()
        [(url, key, options)] = created
        assert (url, key) == ("https://proj.supabase.co", "secret")
        assert options.postgrest_client_timeout == 5

    def test_select_builds_query(self):
        service, client = rest_service([[{"id": 1}]])
        rows = service.select("otc_orders", {"status": "Pending"}, order_by="date_cde", descending=True)
        assert rows == [{"id": 1}]
        assert client.executed == [
            [
                ("table", "otc_orders"),
                ("select", "*"),
                ("eq", "status", "Pending"),
                ("order", "date_cde", True),
            ]
        ]

    def test_insert_sends_records(self):
        service, client = rest_service([[]])
        service.insert("otc_orders", [{"num_cde": "A"}])
        assert client.executed == [[("table", "otc_orders"), ("insert", [{"num_cde": "A"}])]]

    def test_empty_insert_skipped(self):
        service, client = rest_service([])
        service.insert("otc_orders", [])
        assert client.executed == []

    def test_update_filters_by_match(self):
        service, client = rest_service([[]])
        service.update("otc_orders", {"status": "Delivered"}, {"id": 3})
        assert client.executed[0][1:] == [("update", {"status": "Delivered"}), ("eq", "id", 3)]

    def test_delete_all_uses_filter(self):
        service, client = rest_service([[]])
        service.delete("otc_orders")
        assert client.executed[0][1:] == [("delete",), ("not_",), ("is_", "id", "null")]

    def test_delete_match(self):
        service, client = rest_service([[]])
        service.delete("otc_orders", {"id": 7})
        assert client.executed[0][1:] == [("delete",), ("eq", "id", 7)]

    def test_rpc(self):
        service, client = rest_service([""])
        assert service.rpc("switch_project_calculation_method", {"method": "otc_based"}) is None
        assert client.executed == [
            [("rpc", "switch_project_calculation_method", {"method": "otc_based"})]
        ]

    def test_rpc_returns_data(self):
        service, _ = rest_service([[{"refreshed": 1}]])
        assert service.rpc("refresh_project_analytics_views") == [{"refreshed": 1}]

    def test_error_carries_postgrest_fields(self):
        error = APIError(
            {"code": "23502", "message": "null value", "details": "col x", "hint": "fix it"}
        )
        service, _ = rest_service([error])
        with pytest.raises(BackendError) as exc_info:
            service.insert("otc_orders", [{"a": 1}])
        err = exc_info.value
        assert (err.code, err.message, err.details, err.hint) == (
            "23502",
            "null value",
            "col x",
            "fix it",
        )
        assert "hint=fix it" in str(err)

    def test_reads_retry_on_connection_error(self):
        service, client = rest_service([httpx.ConnectError("boom"), []])
        assert service.select("projects") == []
        assert len(client.executed) == 2

    def test_retries_exhausted(self):
        service, client = rest_service([httpx.ConnectError("boom")] * 3)
        with pytest.raises(BackendError, match="rpc refresh_project_analytics_views failed"):
            service.rpc("refresh_project_analytics_views")
        assert len(client.executed) == 3

    def test_zero_retries_still_attempts_once(self):
        service, client = rest_service([httpx.ReadTimeout("slow")], max_retries=0)
        with pytest.raises(BackendError, match="select projects failed"):
            service.select("projects")
        assert len(client.executed) == 1

    def test_writes_are_not_retried(self):
        service, client = rest_service([httpx.ConnectError("boom"), []])
        with pytest.raises(BackendError):
            service.insert("otc_orders", [{"a": 1}])
        assert len(client.executed) == 1

    def test_close(self):
        service, _ = rest_service([])
        service.close()
        with pytest.raises(RuntimeError, match="not connected"):
            service.select("projects")
