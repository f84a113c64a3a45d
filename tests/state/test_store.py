"""Tests for state stores."""

import json
import threading
import pytest
from infraplan.ingest.values import UNKNOWN
from infraplan.state import JsonStateStore, MemoryStateStore, StateSnapshot
from infraplan.utils.errors import StateError


class TestMemoryStateStore:
    """Test the in-memory store."""

    def test_commit_and_remove(self):
        store = MemoryStateStore()
        store.commit("aws_vpc.net", "aws_vpc", {"id": "vpc-1"})
        store.commit("aws_subnet.a", "aws_subnet", {"id": "subnet-1"}, ["aws_vpc.net", "aws_vpc.net"])
        snapshot = store.load()
        assert snapshot.serial == 2
        assert snapshot.addresses() == ["aws_subnet.a", "aws_vpc.net"]
        assert snapshot.get("aws_subnet.a").dependencies == ["aws_vpc.net"]

        store.remove("aws_subnet.a")
        assert store.list_addresses() == ["aws_vpc.net"]
        assert store.load().serial == 3

    def test_remove_missing_is_ignored(self):
        store = MemoryStateStore()
        store.remove("aws_vpc.ghost")
        assert store.load().serial == 0

    def test_load_returns_copy(self):
        store = MemoryStateStore()
        store.commit("aws_vpc.net", "aws_vpc", {"id": "vpc-1", "tags": {"a": "b"}})
        snapshot = store.load()
        snapshot.resources["aws_vpc.net"].attributes["tags"]["a"] = "changed"
        assert store.get("aws_vpc.net").attributes["tags"] == {"a": "b"}

    def test_initial_snapshot_is_copied(self):
        initial = StateSnapshot(serial=5)
        store = MemoryStateStore(initial)
        store.commit("aws_vpc.net", "aws_vpc", {"id": "vpc-1"})
        assert initial.serial == 5
        assert store.load().serial == 6

    def test_concurrent_commits(self):
        """Every commit from every thread lands, and the serial counts them all."""
        store = MemoryStateStore()

        def worker(n):
            for i in range(20):
                store.commit(f"aws_sqs_queue.q{n}_{i}", "aws_sqs_queue", {"id": f"q-{n}-{i}"})

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        snapshot = store.load()
        assert len(snapshot) == 100
        assert snapshot.serial == 100

    def test_evaluate_outputs(self):
        store = MemoryStateStore()
        store.commit("aws_lb.web", "aws_lb", {"id": "lb-1", "dns_name": "web.example.com"})
        outputs = store.evaluate_outputs({
            "url": "https://${aws_lb.web.dns_name}/",
            "pending": "${aws_sqs_queue.jobs.url}",
            "static": "v1",
        })
        assert outputs == {"pending": UNKNOWN, "static": "v1", "url": "https://web.example.com/"}


class TestJsonStateStore:
    """Test the JSON file store."""

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonStateStore(str(tmp_path / "state.json"))
        assert store.load().serial == 0
        assert store.list_addresses() == []

    def test_commit_writes_file(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        store = JsonStateStore(str(path))
        store.commit("aws_vpc.net", "aws_vpc", {"id": "vpc-1"}, [])
        data = json.loads(path.read_text())
        assert data["serial"] == 1
        assert data["resources"]["aws_vpc.net"]["attributes"] == {"id": "vpc-1"}
        assert [p.name for p in path.parent.iterdir()] == ["state.json"]

    def test_reopen(self, tmp_path):
        path = tmp_path / "state.json"
        JsonStateStore(str(path)).commit("aws_vpc.net", "aws_vpc", {"id": "vpc-1"})
        reopened = JsonStateStore(str(path))
        assert reopened.get("aws_vpc.net").attributes["id"] == "vpc-1"
        assert reopened.load().serial == 1

    def test_unserializable_value(self, tmp_path):
        path = tmp_path / "state.json"
        store = JsonStateStore(str(path))
        store.commit("aws_vpc.net", "aws_vpc", {"id": "vpc-1"})
        with pytest.raises(StateError, match="not JSON serializable"):
            store.commit("aws_sqs_queue.jobs", "aws_sqs_queue", {"handle": object()})
        assert store.list_addresses() == ["aws_vpc.net"]
        assert json.loads(path.read_text())["serial"] == 1
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_failed_replace_removes_temp_file(self, tmp_path, monkeypatch):
        store = JsonStateStore(str(tmp_path / "state.json"))

        def refuse(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr("infraplan.state.store.os.replace", refuse)
        with pytest.raises(StateError, match="read-only"):
            store.commit("aws_vpc.net", "aws_vpc", {"id": "vpc-1"})
        assert list(tmp_path.iterdir()) == []
        assert store.load().serial == 0

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("not json")
        with pytest.raises(StateError, match="Invalid JSON"):
            JsonStateStore(str(path)).load()

    def test_invalid_structure(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"serial": -1}))
        with pytest.raises(StateError, match="Invalid state file"):
            JsonStateStore(str(path)).load()
