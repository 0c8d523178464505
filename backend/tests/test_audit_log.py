"""Audit log bounds, attribution and filtering."""

from sgpro.services import session_service
from sgpro.services.audit_service import MAX_LOG_ENTRIES, SYSTEM_USER_NAME, AuditLog


def _log(persisted=None):
    calls = persisted if persisted is not None else []
    return AuditLog(session_provider=lambda: None, persist=lambda: calls.append(1))


class TestBounds:
    def test_never_exceeds_max_and_keeps_newest(self):
        log = _log()
        for i in range(MAX_LOG_ENTRIES + 50):
            log.add("create", "products", f"entry {i}")

        assert len(log) == MAX_LOG_ENTRIES
        assert log.entries[0].details == f"entry {MAX_LOG_ENTRIES + 49}"
        assert log.entries[-1].details == "entry 50"

    def test_every_add_persists(self):
        calls = []
        log = _log(calls)
        log.add("create", "products", "a")
        log.add("delete", "products", "b")
        assert len(calls) == 2

    def test_replace_truncates_without_persisting(self):
        calls = []
        source = _log()
        for i in range(5):
            source.add("create", "sales", str(i))

        target = AuditLog(session_provider=lambda: None, persist=lambda: calls.append(1), max_entries=3)
        target.replace(source.entries)
        assert [e.details for e in target.entries] == ["4", "3", "2"]
        assert calls == []


class TestAttribution:
    def test_system_actor_without_session(self, store):
        entry = store.add_log("system", "system", "boot")
        assert entry.user_id is None
        assert entry.user_name == SYSTEM_USER_NAME

    def test_session_actor(self, store):
        session_service.login(store, "gerente", "gerente")
        entry = store.add_log("update", "products", "x")
        assert entry.user_id == store.current_user.id
        assert entry.user_name == store.current_user.full_name

    def test_explicit_actor_wins(self, store):
        entry = store.add_log("system", "system", "x", user_id="u9", user_name="Bot")
        assert (entry.user_id, entry.user_name) == ("u9", "Bot")


class TestFilter:
    def test_conjunctive_filters(self, store):
        store.add_log("create", "products", "Produto novo")
        store.add_log("delete", "products", "Produto removido")
        store.add_log("create", "sales", "Venda")

        assert len(store.filter_logs({"action": "create", "module": "products"})) == 1
        assert len(store.filter_logs({"module": "products"})) == 2
        assert len(store.filter_logs({"action": "all", "module": "all"})) == len(store.logs)
        assert [e.details for e in store.filter_logs({"search": "removido"})] == ["Produto removido"]

    def test_date_prefix_and_user(self, store):
        entry = store.add_log("create", "products", "x", user_id="u1", user_name="Ana")
        day = entry.timestamp[:10]
        assert entry in store.filter_logs({"date": day})
        assert store.filter_logs({"date": "1999-01-01"}) == []
        assert store.filter_logs({"userId": "u1"}) == [entry]
        assert store.filter_logs({"search": "ana"}) == [entry]

    def test_no_filters_returns_everything(self, store):
        assert store.filter_logs() == store.logs


def test_clear_leaves_single_system_entry(store, storage):
    store.add_log("create", "products", "x")
    entry = store.clear_logs()

    assert store.logs == [entry]
    assert entry.action == "system"
    assert entry.module == "system"
    assert "sgpro_logs" in storage.keys()
