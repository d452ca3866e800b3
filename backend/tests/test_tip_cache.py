"""
Tests unitaires — TipCache (journal borné des conseils radio).
"""

import json

from kisansathi.storage.tip_cache import CACHE_KEY, MAX_TIPS, Tip, TipCache


def _tip(i):
    return Tip(crop="धान", stage="रोपाइँ", text=f"tip {i}")


class TestTip:

    def test_to_dict_uses_camel_case_and_omits_missing_location(self):
        tip = Tip(crop="मकै", stage="फूल", text="पानी दिनुहोस्", id="t1", created_at="2025-03-14T06:00:00")
        assert tip.to_dict() == {
            "id": "t1",
            "createdAt": "2025-03-14T06:00:00",
            "crop": "मकै",
            "stage": "फूल",
            "text": "पानी दिनुहोस्",
        }

    def test_from_dict_restores_location(self):
        data = _tip(1).to_dict()
        data["location"] = "चितवन"
        tip = Tip.from_dict(data)
        assert tip.location == "चितवन"
        assert tip.text == "tip 1"

    def test_ids_are_unique(self):
        assert _tip(1).id != _tip(1).id


class TestTipCache:

    def test_empty_store_loads_nothing(self, tip_cache):
        assert tip_cache.load() == []
        assert tip_cache.count() == 0

    def test_save_keeps_insertion_order(self, tip_cache):
        for i in range(3):
            tip_cache.save(_tip(i))
        assert [t.text for t in tip_cache.load()] == ["tip 0", "tip 1", "tip 2"]

    def test_fifo_eviction_beyond_max(self, tip_cache):
        for i in range(MAX_TIPS + 5):
            tip_cache.save(_tip(i))

        tips = tip_cache.load()
        assert len(tips) == MAX_TIPS
        assert tips[0].text == "tip 5"
        assert tips[-1].text == f"tip {MAX_TIPS + 4}"

    def test_custom_capacity(self, memory_store):
        cache = TipCache(memory_store, max_tips=3)
        for i in range(5):
            cache.save(_tip(i))
        assert [t.text for t in cache.load()] == ["tip 2", "tip 3", "tip 4"]

    def test_corrupted_json_is_empty(self, memory_store, tip_cache):
        memory_store.set(CACHE_KEY, "{not json")
        assert tip_cache.load() == []

        # un nouvel enregistrement repart d'un cache sain
        tip_cache.save(_tip(1))
        assert tip_cache.count() == 1

    def test_non_list_payload_is_empty(self, memory_store, tip_cache):
        memory_store.set(CACHE_KEY, json.dumps({"text": "x"}))
        assert tip_cache.load() == []

    def test_invalid_items_are_skipped(self, memory_store, tip_cache):
        good = _tip(1).to_dict()
        memory_store.set(CACHE_KEY, json.dumps([good, {"text": "sans id"}, "chaîne", None]))
        assert [t.text for t in tip_cache.load()] == ["tip 1"]

    def test_clear(self, tip_cache):
        tip_cache.save(_tip(1))
        tip_cache.clear()
        assert tip_cache.count() == 0

    def test_recent_texts(self, tip_cache):
        for i in range(12):
            tip_cache.save(_tip(i))
        assert tip_cache.recent_texts(10) == [f"tip {i}" for i in range(2, 12)]
        assert tip_cache.recent_texts(0) == []

    def test_offline_batch_pages_newest_first(self, tip_cache):
        for i in range(8):
            tip_cache.save(_tip(i))

        first = tip_cache.offline_batch(0, 6)
        second = tip_cache.offline_batch(6, 6)
        assert [t.text for t in first] == [f"tip {i}" for i in range(7, 1, -1)]
        assert [t.text for t in second] == ["tip 1", "tip 0"]
        assert tip_cache.offline_batch(8, 6) == []
