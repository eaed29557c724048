"""Tests for versioned persistence.

Tests cover:
1. save then load restores an equal state
2. Missing key -> ABSENT
3. Malformed or invalid record -> purged, logged, ABSENT
4. A different (bumped) key never sees an older save
5. File-backed store layout and key validation
"""

from __future__ import annotations

import json
import logging

import pytest

from models.economy import EconomyState, Position
from simulation.persistence import (
    FileKeyValueStore,
    LoadStatus,
    MemoryKeyValueStore,
    PersistenceStore,
)

KEY = "codex-save-v3"


@pytest.fixture
def state() -> EconomyState:
    return EconomyState(
        cash=10_017.5,
        stocks=[
            Position(symbol="NVDA", price=121.337, owned=1),
            Position(symbol="TSLA", price=350.0, owned=0),
        ],
        exchange_rate=64_000.0,
    )


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


class TestPersistenceStore:
    def test_save_then_load(self, kv, state):
        store = PersistenceStore(kv, KEY)
        store.save(state)

        result = store.load(exchange_rate=64_000.0)
        assert result.status is LoadStatus.RESTORED
        assert result.restored
        assert result.state == state

    def test_saved_layout(self, kv, state):
        PersistenceStore(kv, KEY).save(state)
        record = json.loads(kv.data[KEY])
        assert set(record) == {"cash", "stocks"}
        assert record["stocks"][0] == {"symbol": "NVDA", "price": 121.337, "owned": 1}

    def test_exchange_rate_comes_from_caller(self, kv, state):
        store = PersistenceStore(kv, KEY)
        store.save(state)
        assert store.load(exchange_rate=1.0).state.exchange_rate == 1.0

    def test_missing_key(self, kv):
        result = PersistenceStore(kv, KEY).load(exchange_rate=1.0)
        assert result.status is LoadStatus.ABSENT
        assert result.state is None

    def test_malformed_json_is_purged(self, kv, caplog):
        kv.set(KEY, "{not json")
        with caplog.at_level(logging.ERROR, logger="simulation.persistence"):
            result = PersistenceStore(kv, KEY).load(exchange_rate=1.0)

        assert result.status is LoadStatus.ABSENT
        assert KEY not in kv.data
        assert "Failed to load state" in caplog.text

    @pytest.mark.parametrize(
        "record",
        [
            {"cash": -1, "stocks": []},
            {"cash": 10, "stocks": [{"symbol": "NVDA", "price": 0, "owned": 0}]},
            {"cash": 10, "stocks": [{"symbol": "NVDA", "price": 5, "owned": -2}]},
            {"cash": 5, "stocks": []},
            {
                "cash": 5,
                "stocks": [
                    {"symbol": "NVDA", "price": 1.0, "owned": 0},
                    {"symbol": "NVDA", "price": 2.0, "owned": 4},
                ],
            },
            {"stocks": []},
            [1, 2, 3],
        ],
    )
    def test_invalid_record_is_purged(self, kv, record):
        kv.set(KEY, json.dumps(record))
        result = PersistenceStore(kv, KEY).load(exchange_rate=1.0)
        assert result.status is LoadStatus.ABSENT
        assert KEY not in kv.data

    def test_bumped_key_ignores_old_save(self, kv, state):
        PersistenceStore(kv, "codex-save-v2").save(state)
        result = PersistenceStore(kv, KEY).load(exchange_rate=1.0)
        assert result.status is LoadStatus.ABSENT
        # The old record is left alone, just unreachable.
        assert "codex-save-v2" in kv.data

    def test_purge(self, kv, state):
        store = PersistenceStore(kv, KEY)
        store.save(state)
        store.purge()
        assert store.load(exchange_rate=1.0).status is LoadStatus.ABSENT

    def test_save_overwrites(self, kv, state):
        store = PersistenceStore(kv, KEY)
        store.save(state)
        state.cash = 5.0
        store.save(state)
        assert store.load(exchange_rate=1.0).state.cash == 5.0


class TestFileKeyValueStore:
    def test_round_trip(self, tmp_path, state):
        kv = FileKeyValueStore(tmp_path / "saves")
        store = PersistenceStore(kv, KEY)
        store.save(state)

        assert (tmp_path / "saves" / f"{KEY}.json").exists()
        assert store.load(exchange_rate=64_000.0).state == state

    def test_get_missing(self, tmp_path):
        assert FileKeyValueStore(tmp_path).get(KEY) is None

    def test_remove_missing_is_ok(self, tmp_path):
        FileKeyValueStore(tmp_path).remove(KEY)

    def test_no_temp_file_left(self, tmp_path):
        kv = FileKeyValueStore(tmp_path)
        kv.set(KEY, "{}")
        assert sorted(p.name for p in tmp_path.iterdir()) == [f"{KEY}.json"]

    @pytest.mark.parametrize("key", ["../escape", "a/b", ""])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        with pytest.raises(ValueError):
            FileKeyValueStore(tmp_path).set(key, "{}")

    def test_corrupted_file_is_deleted(self, tmp_path):
        (tmp_path / f"{KEY}.json").write_text("garbage", encoding="utf-8")
        result = PersistenceStore(FileKeyValueStore(tmp_path), KEY).load(exchange_rate=1.0)
        assert result.status is LoadStatus.ABSENT
        assert not (tmp_path / f"{KEY}.json").exists()
