"""Key-value storage backends and persistence failure handling."""

import pytest

from sgpro.storage import MemoryStorage, SqlStorage, StorageQuotaExceeded


class TestMemoryStorage:
    def test_get_set_remove(self):
        storage = MemoryStorage()
        assert storage.get_item("k") is None
        storage.set_item("k", "v")
        assert storage.get_item("k") == "v"
        storage.remove_item("k")
        assert storage.get_item("k") is None
        storage.remove_item("k")

    def test_quota(self):
        storage = MemoryStorage(quota_bytes=5)
        storage.set_item("a", "123")
        storage.set_item("a", "12345")
        with pytest.raises(StorageQuotaExceeded):
            storage.set_item("b", "1")

    def test_is_available(self):
        assert MemoryStorage().is_available()
        assert not MemoryStorage(quota_bytes=0).is_available()


class TestSqlStorage:
    def test_round_trip(self, app):
        with app.app_context():
            storage = SqlStorage()
            storage.set_item("test_k", '{"a": 1}')
            storage.set_item("test_k", '{"a": 2}')
            assert storage.get_item("test_k") == '{"a": 2}'
            assert "test_k" in storage.keys()
            storage.remove_item("test_k")
            assert storage.get_item("test_k") is None
            assert storage.is_available()

    def test_store_state_is_persisted(self, app, app_store):
        with app.app_context():
            keys = SqlStorage().keys()
        assert "sgpro_users" in keys
        assert "sgpro_settings" in keys


class TestPersistenceFailure:
    def test_quota_failure_sets_read_only_and_keeps_state(self, store, storage, caplog):
        storage.quota_bytes = 0

        product = store.add_product({"code": "Q", "name": "Q", "cost": 1, "price": 2, "stock": 1})

        assert store.get_product(product.id) is product
        assert store.settings.read_only_mode is True
        assert "Failed to save" in caplog.text

    def test_save_returns_false(self, store, storage):
        storage.quota_bytes = 0
        assert store.save_to_storage() is False
        assert store.save_logs() is False
