import pytest

from asap_agent.exceptions import StorageError
from asap_agent.storage import FileStorage, MemoryStorage, SQLStorage, build_storage


@pytest.fixture(params=["memory", "file", "sql"])
def backend(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    if request.param == "file":
        return FileStorage(tmp_path / "cache")
    return SQLStorage(f"sqlite:///{tmp_path / 'kv.db'}")


def test_missing_key_loads_none(backend):
    assert backend.load("asap_agent_cache") is None


def test_save_load_overwrite_delete(backend):
    backend.save("asap_agent_cache", '{"a": 1}')
    assert backend.load("asap_agent_cache") == '{"a": 1}'

    backend.save("asap_agent_cache", '{"b": 2}')
    assert backend.load("asap_agent_cache") == '{"b": 2}'

    backend.delete("asap_agent_cache")
    assert backend.load("asap_agent_cache") is None
    # Deleting again is a no-op
    backend.delete("asap_agent_cache")


def test_file_storage_sanitises_session_keys(tmp_path):
    storage = FileStorage(tmp_path)
    storage.save("asap_agent_messages:abc/../x", "[]")

    files = [p.name for p in tmp_path.iterdir()]
    assert files == ["asap_agent_messages_abc_.._x.json"]
    assert storage.load("asap_agent_messages:abc/../x") == "[]"


def test_file_storage_write_error_raises_storage_error(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    storage = FileStorage(blocker)

    with pytest.raises(StorageError):
        storage.save("asap_agent_cache", "{}")


def test_sql_storage_keeps_rows_across_instances(tmp_path):
    url = f"sqlite:///{tmp_path / 'kv.db'}"
    SQLStorage(url).save("asap_agent_cache", "{}")
    assert SQLStorage(url).load("asap_agent_cache") == "{}"


def test_build_storage_selects_backend():
    assert isinstance(build_storage("memory"), MemoryStorage)
    assert isinstance(build_storage("file"), FileStorage)
    with pytest.raises(ValueError):
        build_storage("redis")
