import shutil
import tempfile
import threading
from enum import Enum
from pathlib import Path

import pytest

from common.config import Settings
from store.file_store import FileStore
from store.memory_store import MemoryStore
from store.secure_store import SecureFileStore
from storebox.registry import BoxRegistry, default_store_factory
from storebox.types import BoxType, PersistMode


class UserKeys(str, Enum):
    TOKEN = "token"


class OtherKeys(str, Enum):
    THEME = "theme"


@pytest.fixture
def tmp_dir():
    d = tempfile.mkdtemp(prefix="registry-test-")
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def settings(tmp_dir):
    return Settings(data_dir=tmp_dir, password="pw")


@pytest.fixture
def registry(settings):
    stores = {box_type: MemoryStore() for box_type in BoxType}
    return BoxRegistry(store_factory=lambda box_type: stores[box_type], settings=settings)


class TestBoxRegistry:
    def test_same_lookup_returns_same_instance(self, registry):
        a = registry.box("prefs", BoxType.INSECURE)
        b = registry.box("prefs", BoxType.INSECURE)
        assert a is b

    def test_box_types_are_independent(self, registry):
        secure = registry.box("prefs", BoxType.SECURE)
        insecure = registry.box("prefs", BoxType.INSECURE)
        assert secure is not insecure
        secure.set("k", "secret")
        assert insecure.get("k") is None

    def test_load_uses_key_type_name(self, registry):
        box = registry.load(UserKeys, BoxType.SECURE)
        assert box.namespace == "UserKeys"
        assert box.box_type is BoxType.SECURE
        assert registry.box("UserKeys", BoxType.SECURE) is box

    def test_existing_box_returned_despite_other_key_type(self, registry):
        first = registry.load(UserKeys, BoxType.INSECURE, namespace="shared")
        first.set(UserKeys.TOKEN, "t")
        second = registry.box("shared", BoxType.INSECURE, key_type=OtherKeys)
        assert second is first
        assert second.get_string(OtherKeys.THEME) is None

    def test_per_call_store_factory(self, registry):
        custom = MemoryStore()
        box = registry.box("custom", BoxType.INSECURE, store_factory=lambda _t: custom)
        box.set("k", 1)
        assert custom.keys() == ["custom"]

    def test_concurrent_first_lookups_construct_once(self, settings):
        built = []
        lock = threading.Lock()

        def factory(box_type):
            with lock:
                built.append(box_type)
            return MemoryStore()

        registry = BoxRegistry(store_factory=factory, settings=settings)
        barrier = threading.Barrier(8)
        results = []

        def lookup():
            barrier.wait()
            results.append(registry.box("race", BoxType.INSECURE))

        threads = [threading.Thread(target=lookup) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(built) == 1
        assert all(r is results[0] for r in results)

    def test_boxes_snapshot(self, registry):
        registry.box("a", BoxType.SECURE)
        registry.box("b", BoxType.SECURE)
        assert sorted(b.namespace for b in registry.boxes(BoxType.SECURE)) == ["a", "b"]
        assert registry.boxes(BoxType.INSECURE) == []

    def test_flush_all_writes_debounced_boxes(self, tmp_dir):
        stores = {box_type: MemoryStore() for box_type in BoxType}
        settings = Settings(data_dir=tmp_dir, persist_mode="debounced", debounce_ms=60000)
        registry = BoxRegistry(store_factory=lambda t: stores[t], settings=settings)
        box = registry.box("prefs", BoxType.INSECURE)
        assert box.persist_mode is PersistMode.DEBOUNCED
        box.set("k", 1)
        assert stores[BoxType.INSECURE].keys() == []
        registry.flush_all()
        assert stores[BoxType.INSECURE].keys() == ["prefs"]

    @pytest.mark.parametrize("mode", ["DEBOUNCED", " Debounced ", PersistMode.DEBOUNCED])
    def test_hand_built_settings_persist_mode(self, tmp_dir, mode):
        settings = Settings(data_dir=tmp_dir, persist_mode=mode)
        registry = BoxRegistry(store_factory=lambda t: MemoryStore(), settings=settings)
        box = registry.box("prefs", BoxType.INSECURE)
        assert box.persist_mode is PersistMode.DEBOUNCED
        box.flush()


class TestDefaultStoreFactory:
    def test_factory_picks_store_per_type(self, settings):
        factory = default_store_factory(settings)
        secure = factory(BoxType.SECURE)
        insecure = factory(BoxType.INSECURE)
        assert isinstance(secure, SecureFileStore)
        assert secure.directory == settings.secure_dir
        assert type(insecure) is FileStore
        assert insecure.directory == settings.insecure_dir

    def test_reconstruction_from_disk(self, settings):
        BoxRegistry(settings=settings).load(UserKeys, BoxType.SECURE).set(UserKeys.TOKEN, "abc")
        fresh = BoxRegistry(settings=settings).load(UserKeys, BoxType.SECURE)
        assert fresh.get_string(UserKeys.TOKEN) == "abc"

    def test_secure_box_without_password_still_usable(self, tmp_dir, monkeypatch):
        monkeypatch.delenv("STOREBOX_PASSWORD", raising=False)
        registry = BoxRegistry(settings=Settings(data_dir=tmp_dir))
        box = registry.load(UserKeys, BoxType.SECURE)
        box.set(UserKeys.TOKEN, "kept in memory")
        assert box.get(UserKeys.TOKEN) == "kept in memory"
