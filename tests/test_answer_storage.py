"""
Answer storage provider tests - local store, legacy migration, remote with fallback
"""
import asyncio
import json
import time

import httpx
import pytest

from app.core import config
from app.database.kv_store import JsonFileKeyValueStore
from app.main import app
from app.models.schemas import AnswerRecord, AnswerValue
from app.services.answer_storage import (
    AnswerStorageError,
    LocalStorageProvider,
    RemoteStorageProvider,
    get_storage_provider,
)


@pytest.fixture
def store(tmp_path):
    return JsonFileKeyValueStore(str(tmp_path / "local_store.json"))


@pytest.fixture
def local(store):
    return LocalStorageProvider(store, namespace="app", schema_version="v1")


def make_record(subject_id="OBJ123", **answers):
    return AnswerRecord(
        schema_version="v1",
        subject_id=subject_id,
        answers={item_id: AnswerValue(**value) for item_id, value in answers.items()},
    )


def remote_with(local, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteStorageProvider(local, base_url="http://storage.test", client=client)


# Local provider

def test_local_load_missing_returns_none(local):
    assert asyncio.run(local.load("robin", "OBJ123")) is None


def test_local_save_and_load(local, store):
    record = make_record(A={"answer": "yes"}, B={"value": 42})

    asyncio.run(local.save("robin", "OBJ123", record))
    loaded = asyncio.run(local.load("robin", "OBJ123"))

    assert loaded == record
    assert store.get("app:v1:robin:ovm:OBJ123") is not None


def test_local_keys_are_scoped_by_user_and_schema(store):
    v1 = LocalStorageProvider(store, namespace="app", schema_version="v1")
    v2 = LocalStorageProvider(store, namespace="app", schema_version="v2")

    asyncio.run(v1.save("robin", "OBJ123", make_record(A={"answer": "yes"})))

    assert asyncio.run(v1.load("alex", "OBJ123")) is None
    assert asyncio.run(v2.load("robin", "OBJ123")) is None


def test_local_save_overwrites(local):
    asyncio.run(local.save("robin", "OBJ123", make_record(A={"answer": "yes"})))
    asyncio.run(local.save("robin", "OBJ123", make_record(A={"answer": "no"})))

    loaded = asyncio.run(local.load("robin", "OBJ123"))
    assert loaded.answers == {"A": AnswerValue(answer="no")}


def test_local_malformed_data_is_treated_as_absent(local, store):
    key = local.storage_key("robin", "OBJ123")

    store.set(key, "{not json")
    assert asyncio.run(local.load("robin", "OBJ123")) is None

    store.set(key, json.dumps({"schemaVersion": "v1", "answers": {}}))
    assert asyncio.run(local.load("robin", "OBJ123")) is None

    store.set(key, json.dumps({"schemaVersion": "v1", "subjectId": "OTHER", "answers": {}}))
    assert asyncio.run(local.load("robin", "OBJ123")) is None


def test_local_clear_is_idempotent(local):
    asyncio.run(local.save("robin", "OBJ123", make_record(A={"answer": "yes"})))

    asyncio.run(local.clear("robin", "OBJ123"))
    asyncio.run(local.clear("robin", "OBJ123"))

    assert asyncio.run(local.load("robin", "OBJ123")) is None


def test_store_persists_across_instances(tmp_path):
    path = str(tmp_path / "store.json")
    JsonFileKeyValueStore(path).set("k", "v")
    assert JsonFileKeyValueStore(path).get("k") == "v"


def test_stores_on_same_file_keep_each_others_keys(tmp_path):
    path = str(tmp_path / "store.json")
    a = JsonFileKeyValueStore(path)
    b = JsonFileKeyValueStore(path)
    b.get("anything")

    a.set("k1", "v1")
    b.set("k2", "v2")
    a.remove("missing")

    assert JsonFileKeyValueStore(path).keys() == ["k1", "k2"]
    assert b.get("k1") == "v1"


def test_providers_on_same_file_keep_each_others_records(tmp_path):
    path = str(tmp_path / "store.json")
    first = LocalStorageProvider(JsonFileKeyValueStore(path), namespace="app", schema_version="v1")
    second = LocalStorageProvider(JsonFileKeyValueStore(path), namespace="app", schema_version="v1")
    asyncio.run(second.load("robin", "OBJ2"))

    asyncio.run(first.save("robin", "OBJ1", make_record(subject_id="OBJ1", A={"answer": "yes"})))
    asyncio.run(second.save("robin", "OBJ2", make_record(subject_id="OBJ2", A={"answer": "no"})))

    fresh = LocalStorageProvider(JsonFileKeyValueStore(path), namespace="app", schema_version="v1")
    assert asyncio.run(fresh.load("robin", "OBJ1")).answers == {"A": AnswerValue(answer="yes")}
    assert asyncio.run(fresh.load("robin", "OBJ2")).answers == {"A": AnswerValue(answer="no")}


# Legacy migration

def test_migrate_legacy_key(local, store):
    legacy_raw = json.dumps({
        "schemaVersion": "v1",
        "objectId": "OBJ123",
        "lastModified": "2024-01-01T00:00:00.000Z",
        "answers": {"A": {"answer": "yes"}},
    })
    store.set("app:ovm:v1:OBJ123", legacy_raw)

    assert local.list_legacy_keys() == ["app:ovm:v1:OBJ123"]
    assert local.migrate("app:ovm:v1:OBJ123", "robin") is True

    assert store.get("app:v1:robin:ovm:OBJ123") == legacy_raw
    assert store.get("app:ovm:v1:OBJ123") is None
    assert local.list_legacy_keys() == []

    # Already migrated: legacy key is gone, nothing happens
    assert local.migrate("app:ovm:v1:OBJ123", "robin") is False
    assert store.get("app:v1:robin:ovm:OBJ123") == legacy_raw

    loaded = asyncio.run(local.load("robin", "OBJ123"))
    assert loaded.answers == {"A": AnswerValue(answer="yes")}


def test_migrate_keeps_existing_user_record(local, store):
    asyncio.run(local.save("robin", "OBJ123", make_record(A={"answer": "no"})))
    store.set("app:ovm:v1:OBJ123", json.dumps({"schemaVersion": "v1", "objectId": "OBJ123", "answers": {}}))

    assert local.migrate("app:ovm:v1:OBJ123", "robin") is False
    assert store.get("app:ovm:v1:OBJ123") is None
    assert asyncio.run(local.load("robin", "OBJ123")).answers == {"A": AnswerValue(answer="no")}


def test_migrate_all_ignores_user_scoped_keys(local, store):
    store.set("app:ovm:v1:OBJ1", "{}")
    store.set("app:ovm:v1:OBJ2", "{}")
    store.set("app:v1:alex:ovm:OBJ3", "{}")

    assert local.migrate_all("robin") == 2
    assert store.keys("app:") == ["app:v1:alex:ovm:OBJ3", "app:v1:robin:ovm:OBJ1", "app:v1:robin:ovm:OBJ2"]


def test_migrate_failure_is_swallowed(local, store, monkeypatch):
    store.set("app:ovm:v1:OBJ123", "{}")

    def broken_set(key, value):
        raise OSError("disk full")

    monkeypatch.setattr(store, "set", broken_set)

    assert local.migrate("app:ovm:v1:OBJ123", "robin") is False
    assert store.get("app:ovm:v1:OBJ123") == "{}"


def test_local_save_failure_raises_storage_error(local, store, monkeypatch):
    def broken_set(key, value):
        raise OSError("read-only file system")

    monkeypatch.setattr(store, "set", broken_set)

    with pytest.raises(AnswerStorageError):
        asyncio.run(local.save("robin", "OBJ123", make_record()))


# Remote provider

def test_remote_load_uses_server_record(local):
    record = make_record(A={"answer": "yes"})
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=record.to_wire())

    remote = remote_with(local, handler)
    loaded = asyncio.run(remote.load("robin", "OBJ123"))

    assert loaded == record
    assert requests[0].method == "GET"
    assert requests[0].url.path == "/api/ovm-storage/robin/OBJ123"


def test_remote_load_falls_back_to_local_on_error(local):
    record = make_record(A={"answer": "no"})
    asyncio.run(local.save("robin", "OBJ123", record))

    remote = remote_with(local, lambda request: httpx.Response(500))
    assert asyncio.run(remote.load("robin", "OBJ123")) == record


def test_remote_load_falls_back_to_local_on_timeout(local):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    remote = remote_with(local, handler)
    assert asyncio.run(remote.load("robin", "OBJ123")) is None


def test_remote_load_falls_back_on_malformed_response(local):
    record = make_record(A={"answer": "yes"})
    asyncio.run(local.save("robin", "OBJ123", record))

    remote = remote_with(local, lambda request: httpx.Response(200, json={"answers": "nope"}))
    assert asyncio.run(remote.load("robin", "OBJ123")) == record


def test_remote_load_deadline_covers_slow_body(local):
    """A server trickling its response body is cut off by the overall timeout"""
    record = make_record(A={"answer": "no"})
    asyncio.run(local.save("robin", "OBJ123", record))
    body = json.dumps(make_record(A={"answer": "yes"}).to_wire()).encode()

    async def trickle():
        for i in range(len(body)):
            await asyncio.sleep(0.1)
            yield body[i:i + 1]

    def handler(request):
        return httpx.Response(200, headers={"content-type": "application/json"}, content=trickle())

    remote = RemoteStorageProvider(
        local,
        base_url="http://storage.test",
        timeout=0.2,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    started = time.monotonic()
    loaded = asyncio.run(remote.load("robin", "OBJ123"))
    elapsed = time.monotonic() - started

    assert loaded == record
    assert elapsed < 1.0


def test_remote_save_deadline_saves_locally(local):
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200)

    record = make_record(B={"value": 7})
    remote = RemoteStorageProvider(
        local,
        base_url="http://storage.test",
        timeout=0.2,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    started = time.monotonic()
    with pytest.raises(AnswerStorageError):
        asyncio.run(remote.save("robin", "OBJ123", record))
    elapsed = time.monotonic() - started

    assert elapsed < 1.0
    assert asyncio.run(local.load("robin", "OBJ123")) == record


def test_remote_load_rejects_record_for_other_subject(local):
    record = make_record(A={"answer": "no"})
    asyncio.run(local.save("robin", "OBJ123", record))

    other = make_record(subject_id="OTHER", A={"answer": "yes"})
    remote = remote_with(local, lambda request: httpx.Response(200, json=other.to_wire()))

    assert asyncio.run(remote.load("robin", "OBJ123")) == record


def test_remote_save_mirrors_to_local(local):
    record = make_record(A={"answer": "yes"})
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=bodies[-1])

    remote = remote_with(local, handler)
    asyncio.run(remote.save("robin", "OBJ123", record))

    assert bodies[0]["subjectId"] == "OBJ123"
    assert bodies[0]["answers"] == {"A": {"answer": "yes"}}
    assert asyncio.run(local.load("robin", "OBJ123")) == record


def test_remote_save_failure_still_saves_locally(local):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    record = make_record(B={"value": 12})
    remote = remote_with(local, handler)

    with pytest.raises(AnswerStorageError) as excinfo:
        asyncio.run(remote.save("robin", "OBJ123", record))

    assert "saved locally" in str(excinfo.value)
    assert asyncio.run(local.load("robin", "OBJ123")) == record


def test_remote_clear_failure_still_clears_local(local):
    asyncio.run(local.save("robin", "OBJ123", make_record(A={"answer": "yes"})))

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    remote = remote_with(local, handler)
    asyncio.run(remote.clear("robin", "OBJ123"))

    assert asyncio.run(local.load("robin", "OBJ123")) is None


def test_remote_against_api(local, tmp_path, monkeypatch):
    """Remote provider talking to this app's own answer storage endpoints"""
    monkeypatch.setattr(config, "DATA_DIR", str(tmp_path / "server"))
    record = make_record(A={"answer": "not observed"}, B={"value": "north side"})

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app)) as client:
            remote = RemoteStorageProvider(local, base_url="http://testserver", client=client)
            assert await remote.load("robin", "OBJ123") is None
            await remote.save("robin", "OBJ123", record)
            loaded = await remote.load("robin", "OBJ123")
            await remote.clear("robin", "OBJ123")
            after_clear = await remote.load("robin", "OBJ123")
            return loaded, after_clear

    loaded, after_clear = asyncio.run(scenario())
    assert loaded == record
    assert after_clear is None


# Provider selection

def test_get_storage_provider_selection(store):
    assert isinstance(get_storage_provider(use_remote=False, store=store), LocalStorageProvider)

    remote = get_storage_provider(use_remote=True, store=store)
    assert isinstance(remote, RemoteStorageProvider)
    assert remote.local.store is store
    assert remote.timeout == 5.0


def test_get_storage_provider_shares_store_per_path(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOCAL_STORE_PATH", str(tmp_path / "local_store.json"))

    first = get_storage_provider(use_remote=False)
    second = get_storage_provider(use_remote=True)

    assert first.store is second.local.store
    assert first.store.path == (tmp_path / "local_store.json").resolve()
