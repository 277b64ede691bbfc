import json
import os

import pytest

from fedrelay.core import HistoryLogError
from fedrelay.server import FileBackupStore, FileHistorySink, new_record


@pytest.fixture
def record():
    return new_record(
        "digits classifier",
        ["alice"],
        3,
        {"learningRate": 0.1, "isAsyncUpdate": True},
    )


def test_new_record(record):
    assert record.model_name == "digits classifier"
    assert record.num_updates == 1
    assert record.contributor_ids == ["alice"]
    assert record.round == 3
    assert len(record.id) == 8
    assert record.timestamp.tzinfo is not None


def test_record_ids_unique():
    ids = {new_record("m", ["a"], 1, {}).id for _ in range(50)}
    assert len(ids) == 50


def test_record_serialization(record):
    data = record.to_dict()
    assert data["modelName"] == "digits classifier"
    assert data["contributorIds"] == ["alice"]
    assert data["numUpdates"] == 1
    assert data["config"]["learningRate"] == 0.1


class TestFileHistorySink:
    @pytest.mark.asyncio
    async def test_append_writes_json(self, tmp_path, record):
        sink = FileHistorySink(tmp_path)
        await sink.append(record)

        files = list((tmp_path / "digits_classifier").glob("*.json"))
        assert len(files) == 1
        assert files[0].name.endswith(f"_{record.id}.json")
        assert ":" not in files[0].name
        assert json.loads(files[0].read_text()) == record.to_dict()

    @pytest.mark.asyncio
    async def test_list_records(self, tmp_path):
        sink = FileHistorySink(tmp_path)
        first = new_record("m", ["alice"], 1, {})
        second = new_record("m", ["bob"], 2, {})
        await sink.append(first)
        await sink.append(second)

        records = sink.list_records("m")
        assert {r.id for r in records} == {first.id, second.id}
        assert sorted(r.round for r in records) == [1, 2]
        assert sink.list_records("unknown") == []

    @pytest.mark.asyncio
    async def test_write_failure(self, tmp_path, record):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        sink = FileHistorySink(blocker)

        with pytest.raises(HistoryLogError):
            await sink.append(record)


class TestFileBackupStore:
    @pytest.mark.asyncio
    async def test_save_backup(self, tmp_path):
        store = FileBackupStore(tmp_path)
        await store.save_backup("digits", 4, b"\x00\x00\x80\x3f")

        backups = store.list_backups("digits")
        assert len(backups) == 1
        assert backups[0].parent == tmp_path / "digits" / "models"
        assert backups[0].name.startswith("global_model_r4_")
        assert backups[0].read_bytes() == b"\x00\x00\x80\x3f"

    @pytest.mark.asyncio
    async def test_prunes_oldest(self, tmp_path):
        store = FileBackupStore(tmp_path, max_backups=2)
        for round_number in range(1, 5):
            await store.save_backup("digits", round_number, b"\x00" * 4)
            path = store.list_backups("digits")[-1]
            os.utime(path, ns=(round_number * 10**9, round_number * 10**9))

        names = [p.name for p in store.list_backups("digits")]
        assert len(names) == 2
        assert names[0].startswith("global_model_r3_")
        assert names[1].startswith("global_model_r4_")

    @pytest.mark.asyncio
    async def test_zero_keeps_everything(self, tmp_path):
        store = FileBackupStore(tmp_path, max_backups=0)
        for round_number in range(1, 4):
            await store.save_backup("digits", round_number, b"\x00" * 4)
        assert len(store.list_backups("digits")) == 3
