"""Tests for the client metrics store."""

from querydesk.observability.metrics import LATENCY_WINDOW, MetricsStore, get_metrics_store


class TestOperationStats:
    def test_latency_summary(self):
        store = MetricsStore()
        for ms in (50.0, 100.0, 150.0):
            store.observe("run_query", ms)

        stats = store.summary()["operations"]["run_query"]

        assert stats["calls"] == 3
        assert stats["latency_ms"] == {"median": 100.0, "p95": 150.0, "max": 150.0}
        assert stats["failures"] == {}

    def test_failures_counted_per_operation_and_code(self):
        store = MetricsStore()
        store.observe("upload", 10.0, "UPLOAD_REJECTED")
        store.observe("upload", 12.0, "UPLOAD_REJECTED")
        store.observe("upload", 9.0, "NETWORK_ERROR")
        store.count_failure("run_query", "MALFORMED_RESPONSE")

        summary = store.summary()

        assert summary["operations"]["upload"]["failures"] == {"UPLOAD_REJECTED": 2, "NETWORK_ERROR": 1}
        assert summary["operations"]["run_query"]["calls"] == 0
        assert summary["failures_by_code"] == {"UPLOAD_REJECTED": 2, "NETWORK_ERROR": 1, "MALFORMED_RESPONSE": 1}

    def test_latency_window_is_bounded(self):
        store = MetricsStore()
        for i in range(LATENCY_WINDOW + 100):
            store.observe("list_tables", float(i))

        stats = store.summary()["operations"]["list_tables"]

        assert stats["calls"] == LATENCY_WINDOW + 100
        assert stats["latency_ms"]["max"] == LATENCY_WINDOW + 99

    def test_bytes_sent(self):
        store = MetricsStore()
        store.add_bytes_sent("upload", 100)
        store.add_bytes_sent("upload", 28)

        assert store.summary()["operations"]["upload"]["bytes_sent"] == 128


class TestStoreLevel:
    def test_storage_errors(self):
        store = MetricsStore()
        store.record_storage_error("redis")
        store.record_storage_error("redis")

        assert store.summary()["storage_errors"] == {"redis": 2}

    def test_empty_summary(self):
        summary = MetricsStore().summary()

        assert "since" in summary
        assert summary["operations"] == {}
        assert summary["storage_errors"] == {}

    def test_reset(self):
        store = MetricsStore()
        store.observe("list_tables", 100.0, "HTTP_ERROR")
        store.record_storage_error("file")

        store.reset()
        summary = store.summary()

        assert summary["operations"] == {}
        assert summary["failures_by_code"] == {}
        assert summary["storage_errors"] == {}

    def test_singleton(self):
        assert get_metrics_store() is get_metrics_store()
