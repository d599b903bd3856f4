"""Tests for showbridge.config.store.DataSourceConfigStore."""

import json

import pytest

from showbridge.config.persistence import MemoryOverrideStorage
from showbridge.config.settings import Settings
from showbridge.config.store import DataSourceConfigStore
from showbridge.core.models import DataSourceConfig, FieldMergeMode, MergePolicy, SourceChoice

REMOTE_DOCUMENT = json.dumps(
    {
        "dataSources": {"listSourceChoice": "backend", "detailSourceChoice": "hybrid"},
        "mergePolicy": {"defaultMode": "preferBackend"},
    }
)


class FakeFetcher:
    """Async document fetcher returning canned text (or raising)."""

    def __init__(self, text: str | None = None, error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[str] = []

    async def __call__(self, location: str) -> str:
        self.calls.append(location)
        if self.error is not None:
            raise self.error
        return self.text


def make_store(
    storage: MemoryOverrideStorage | None = None,
    fetcher: FakeFetcher | None = None,
    **env,
) -> DataSourceConfigStore:
    return DataSourceConfigStore(
        Settings(_env_file=None, **env),
        storage=storage if storage is not None else MemoryOverrideStorage(),
        fetcher=fetcher,
    )


class TestGetAndSet:
    """Tests for get/set/export_current."""

    def test_initial_value_uses_environment(self):
        store = make_store(data_source_shows_list="hybrid")

        assert store.get().list_source_choice is SourceChoice.HYBRID
        assert store.get().detail_source_choice is SourceChoice.CONTRACT
        assert store.version == 0

    def test_partial_update_keeps_other_keys(self):
        store = make_store(data_source_show_detail="backend")
        policy_before = store.get().merge_policy

        store.set({"list_source_choice": "hybrid"})

        assert store.get().list_source_choice is SourceChoice.HYBRID
        assert store.get().detail_source_choice is SourceChoice.BACKEND
        assert store.get().merge_policy == policy_before

    def test_set_accepts_camel_case_keys_and_raw_policy(self):
        store = make_store()

        store.set({"mergePolicy": {"defaultMode": "preferContract"}})

        assert store.get().merge_policy.default_mode is FieldMergeMode.PREFER_CONTRACT

    def test_merge_policy_replaced_wholesale(self):
        store = make_store()
        store.set(
            {"merge_policy": MergePolicy(list_fields={"name": FieldMergeMode.PREFER_CONTRACT})}
        )

        store.set({"merge_policy": MergePolicy(default_mode=FieldMergeMode.PREFER_BACKEND)})

        assert store.get().merge_policy.list_fields == {}

    def test_version_increases_on_every_set(self):
        store = make_store()

        store.set({"list_source_choice": "backend"})
        store.set({"list_source_choice": "backend"})

        assert store.version == 2

    def test_unknown_keys_rejected(self):
        store = make_store()

        with pytest.raises(ValueError, match="Unknown config keys: colour"):
            store.set({"colour": "blue"})
        assert store.version == 0

    def test_invalid_values_rejected(self):
        store = make_store()

        with pytest.raises(ValueError):
            store.set({"list_source_choice": "blockchain"})
        assert store.get() == DataSourceConfig()

    def test_export_current_is_deep_copy(self):
        store = make_store()

        exported = store.export_current()
        exported.merge_policy.list_fields["name"] = FieldMergeMode.PREFER_BACKEND

        assert store.get().merge_policy.list_fields == {}
        assert exported == DataSourceConfig(
            merge_policy=MergePolicy(list_fields={"name": FieldMergeMode.PREFER_BACKEND})
        )


class TestSubscribe:
    """Tests for subscribe/unsubscribe."""

    def test_listener_receives_new_value(self):
        store = make_store()
        seen = []
        store.subscribe(seen.append)

        store.set({"detail_source_choice": "hybrid"})

        assert len(seen) == 1
        assert seen[0].detail_source_choice is SourceChoice.HYBRID
        assert seen[0] is store.get()

    def test_unsubscribe_stops_notifications(self):
        store = make_store()
        seen = []
        unsubscribe = store.subscribe(seen.append)

        store.set({"list_source_choice": "backend"})
        unsubscribe()
        unsubscribe()
        store.set({"list_source_choice": "hybrid"})

        assert [c.list_source_choice for c in seen] == [SourceChoice.BACKEND]

    def test_same_listener_twice_is_notified_twice(self):
        store = make_store()
        seen = []
        store.subscribe(seen.append)
        store.subscribe(seen.append)

        store.set({"list_source_choice": "backend"})

        assert len(seen) == 2

    def test_listener_may_unsubscribe_during_notification(self):
        store = make_store()
        seen = []

        def once(config):
            seen.append(config)
            unsubscribe()

        unsubscribe = store.subscribe(once)
        store.set({"list_source_choice": "backend"})
        store.set({"list_source_choice": "hybrid"})

        assert len(seen) == 1

    def test_non_callable_rejected(self):
        with pytest.raises(ValueError, match="callable"):
            make_store().subscribe("not a function")


class TestPersistence:
    """Tests for set_and_persist and the override layer."""

    def test_set_and_persist_writes_camel_case_document(self):
        storage = MemoryOverrideStorage()
        store = make_store(storage)

        store.set_and_persist({"list_source_choice": SourceChoice.HYBRID})

        assert json.loads(storage.text) == {"listSourceChoice": "hybrid"}
        assert store.get().list_source_choice is SourceChoice.HYBRID

    def test_set_and_persist_merges_over_stored_override(self):
        storage = MemoryOverrideStorage('{"detailSourceChoice": "backend"}')
        store = make_store(storage)

        store.set_and_persist({"list_source_choice": "hybrid"})

        assert json.loads(storage.text) == {
            "detailSourceChoice": "backend",
            "listSourceChoice": "hybrid",
        }

    def test_storage_failure_still_updates_memory(self, mocker, caplog):
        storage = MemoryOverrideStorage()
        mocker.patch.object(storage, "write", side_effect=OSError("disk full"))
        store = make_store(storage)

        with caplog.at_level("WARNING", logger="showbridge.config.store"):
            store.set_and_persist({"list_source_choice": "backend"})

        assert store.get().list_source_choice is SourceChoice.BACKEND
        assert "disk full" in caplog.text

    def test_set_and_persist_rejects_unknown_keys(self):
        storage = MemoryOverrideStorage()

        with pytest.raises(ValueError):
            make_store(storage).set_and_persist({"colour": "blue"})
        assert storage.text is None

    def test_invalid_value_is_not_persisted(self):
        storage = MemoryOverrideStorage('{"detailSourceChoice": "backend"}')
        store = make_store(storage)

        with pytest.raises(ValueError):
            store.set_and_persist({"list_source_choice": "bogus"})

        assert storage.text == '{"detailSourceChoice": "backend"}'
        assert store.get() == DataSourceConfig()
        assert store.version == 0

    def test_persisted_policy_is_the_validated_value(self):
        storage = MemoryOverrideStorage()
        store = make_store(storage)

        store.set_and_persist({"merge_policy": {"defaultMode": "preferContract"}})

        assert json.loads(storage.text) == {
            "mergePolicy": {"defaultMode": "preferContract", "listFields": {}, "detailFields": {}}
        }

    @pytest.mark.asyncio
    async def test_override_round_trips_across_restart(self):
        env = {"data_source_merge_policy": '{"listFields": {"name": "preferBackend"}}'}
        storage = MemoryOverrideStorage()
        store = make_store(storage, **env)
        assert store.get().merge_policy.list_fields == {"name": FieldMergeMode.PREFER_BACKEND}

        store.set_and_persist({"merge_policy": {"defaultMode": "coalesce"}})
        restarted = make_store(storage, **env)
        await restarted.load()

        assert store.get().merge_policy.list_fields == {}
        assert restarted.get() == store.get()

    def test_override_reapplied_after_document_change_keeps_empty_maps(self):
        storage = MemoryOverrideStorage()
        store = make_store(storage)
        store.set_and_persist({"merge_policy": MergePolicy()})
        document = json.dumps(
            {"mergePolicy": {"listFields": {"description": "preferContract"}}}
        )

        store.apply_document_text(document)

        assert store.get().merge_policy == MergePolicy()

    def test_corrupt_override_is_ignored(self, caplog):
        store = make_store(MemoryOverrideStorage("{broken"))

        with caplog.at_level("WARNING", logger="showbridge.config.store"):
            applied = store.apply_override()

        assert applied is False
        assert store.get() == DataSourceConfig()
        assert "override" in caplog.text


class TestLoad:
    """Tests for load, apply_document_text and reset_override."""

    @pytest.mark.asyncio
    async def test_cascade_priority(self):
        # env=contract, remote=backend, override=hybrid -> hybrid
        storage = MemoryOverrideStorage('{"listSourceChoice": "hybrid"}')
        fetcher = FakeFetcher(REMOTE_DOCUMENT)
        store = make_store(
            storage, fetcher, data_source_shows_list="contract", data_config_path="ds.json"
        )

        await store.load()

        config = store.get()
        assert config.list_source_choice is SourceChoice.HYBRID
        assert config.detail_source_choice is SourceChoice.HYBRID
        assert config.merge_policy.default_mode is FieldMergeMode.PREFER_BACKEND
        assert fetcher.calls == ["ds.json"]

    @pytest.mark.asyncio
    async def test_remote_document_beats_environment(self):
        store = make_store(
            fetcher=FakeFetcher(REMOTE_DOCUMENT),
            data_source_shows_list="hybrid",
            data_config_path="ds.json",
        )

        await store.load()

        assert store.get().list_source_choice is SourceChoice.BACKEND
        assert store.last_document_text == REMOTE_DOCUMENT

    @pytest.mark.asyncio
    async def test_fetch_failure_keeps_environment_and_applies_override(self, caplog):
        storage = MemoryOverrideStorage('{"detailSourceChoice": "backend"}')
        store = make_store(
            storage,
            FakeFetcher(error=OSError("unreachable")),
            data_source_shows_list="hybrid",
            data_config_path="ds.json",
        )

        with caplog.at_level("WARNING", logger="showbridge.config.store"):
            await store.load()

        assert store.get().list_source_choice is SourceChoice.HYBRID
        assert store.get().detail_source_choice is SourceChoice.BACKEND
        assert "unreachable" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_document_is_skipped(self):
        store = make_store(fetcher=FakeFetcher("[1, 2"), data_config_path="ds.json")

        await store.load()

        assert store.get() == DataSourceConfig()

    @pytest.mark.asyncio
    async def test_load_without_document_applies_override_only(self):
        fetcher = FakeFetcher(REMOTE_DOCUMENT)
        store = make_store(MemoryOverrideStorage('{"listSourceChoice": "backend"}'), fetcher)

        await store.load()

        assert store.get().list_source_choice is SourceChoice.BACKEND
        assert fetcher.calls == []

    def test_identical_document_is_not_reapplied(self):
        store = make_store()
        seen = []
        store.subscribe(seen.append)

        assert store.apply_document_text(REMOTE_DOCUMENT) is True
        assert store.apply_document_text(REMOTE_DOCUMENT) is False

        assert len(seen) == 1

    def test_override_survives_document_change(self):
        store = make_store(MemoryOverrideStorage('{"listSourceChoice": "hybrid"}'))

        store.apply_document_text(REMOTE_DOCUMENT)

        assert store.get().list_source_choice is SourceChoice.HYBRID
        assert store.get().detail_source_choice is SourceChoice.HYBRID

    def test_invalid_document_text_raises(self):
        with pytest.raises(ValueError):
            make_store().apply_document_text('"just a string"')

    @pytest.mark.asyncio
    async def test_reset_override_restores_environment_and_document(self):
        storage = MemoryOverrideStorage()
        store = make_store(
            storage,
            FakeFetcher(json.dumps({"dataSources": {"detailSourceChoice": "hybrid"}})),
            data_source_shows_list="backend",
            data_config_path="ds.json",
        )
        await store.load()
        store.set_and_persist(
            {"list_source_choice": "contract", "detail_source_choice": "contract"}
        )
        seen = []
        store.subscribe(seen.append)

        await store.reset_override()

        assert storage.text is None
        assert store.get().list_source_choice is SourceChoice.BACKEND
        assert store.get().detail_source_choice is SourceChoice.HYBRID
        assert seen[-1] is store.get()
