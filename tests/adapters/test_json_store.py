"""Tests for the JSON file storage adapter."""

import json
import os
import tempfile

import pytest

from alarmhook.adapters.storage.json_store import JsonAlarmStorage
from alarmhook.ports.outbound import AlarmStoragePort


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as d:
        yield d


class TestJsonAlarmStorage:
    def test_implements_port(self, tmp_dir):
        assert isinstance(JsonAlarmStorage(os.path.join(tmp_dir, "a.json")), AlarmStoragePort)

    def test_missing_file_is_empty(self, tmp_dir):
        storage = JsonAlarmStorage(os.path.join(tmp_dir, "alarms.json"))
        assert storage.load_all() == []

    def test_save_then_load(self, tmp_dir):
        storage = JsonAlarmStorage(os.path.join(tmp_dir, "nested", "alarms.json"))
        storage.save_all([{"id": "a1", "contactName": "Jöhn"}])
        assert storage.load_all() == [{"id": "a1", "contactName": "Jöhn"}]
        assert [f for f in os.listdir(os.path.join(tmp_dir, "nested")) if f.endswith(".tmp")] == []

    def test_save_overwrites_whole_file(self, tmp_dir):
        path = os.path.join(tmp_dir, "alarms.json")
        storage = JsonAlarmStorage(path)
        storage.save_all([{"id": "a"}, {"id": "b"}])
        storage.save_all([{"id": "b"}])
        with open(path, encoding="utf-8") as f:
            assert json.load(f) == [{"id": "b"}]

    def test_corrupt_file_is_empty(self, tmp_dir, caplog):
        path = os.path.join(tmp_dir, "alarms.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("{not json")
        assert JsonAlarmStorage(path).load_all() == []
        assert "Could not read alarms file" in caplog.text

    def test_non_list_is_empty(self, tmp_dir):
        path = os.path.join(tmp_dir, "alarms.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"id": "a"}, f)
        assert JsonAlarmStorage(path).load_all() == []

    def test_non_dict_entries_dropped(self, tmp_dir):
        path = os.path.join(tmp_dir, "alarms.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump([{"id": "a"}, "junk", 3], f)
        assert JsonAlarmStorage(path).load_all() == [{"id": "a"}]
