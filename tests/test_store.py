import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from task_service.store import ReadWriteLock, TaskStore


def test_create_task(store):
    """Test store create"""
    task = store.create("Test Task", "Test Description")

    assert task.id
    assert task.title == "Test Task"
    assert task.description == "Test Description"
    assert task.completed is False
    assert isinstance(task.created_at, datetime)
    assert task.created_at.tzinfo == timezone.utc


def test_create_task_default_description(store):
    task = store.create("No description")
    assert task.description == ""


def test_create_assigns_sequential_ids(store):
    first = store.create("One")
    second = store.create("Two")

    assert first.id == "task-1"
    assert second.id == "task-2"


def test_get_task(store):
    """Test store get"""
    created = store.create("Test Task", "Desc")

    task, found = store.get(created.id)

    assert found is True
    assert task.id == created.id
    assert task.title == "Test Task"
    assert task.description == "Desc"
    assert task.completed is False
    assert task.created_at == created.created_at


def test_get_task_not_found(store):
    """Test get with non-existent ID"""
    task, found = store.get("task-9999")
    assert found is False
    assert task is None


def test_get_all_empty(store):
    assert store.get_all() == []


def test_get_all(store):
    """Test store get_all"""
    for i in range(5):
        store.create(f"Task {i}")

    tasks = store.get_all()

    assert len(tasks) == 5
    assert {t.title for t in tasks} == {f"Task {i}" for i in range(5)}


def test_delete_task(store):
    """Test store delete"""
    created = store.create("To Delete")

    assert store.delete(created.id) is True

    task, found = store.get(created.id)
    assert found is False
    assert all(t.id != created.id for t in store.get_all())


def test_delete_task_twice(store):
    created = store.create("Once")

    assert store.delete(created.id) is True
    assert store.delete(created.id) is False


def test_delete_task_not_found(store):
    """Test delete with non-existent ID"""
    assert store.delete("task-9999") is False


def test_ids_not_reused_after_delete(store):
    first = store.create("First")
    store.delete(first.id)
    second = store.create("Second")

    assert second.id != first.id


def test_returned_tasks_are_copies(store):
    created = store.create("Original", "Desc")
    created.title = "Changed"

    fetched, _ = store.get(created.id)
    assert fetched.title == "Original"

    fetched.description = "Changed"
    listed = store.get_all()
    listed[0].completed = True

    again, _ = store.get(created.id)
    assert again.description == "Desc"
    assert again.completed is False


def test_store_accepts_any_title(store):
    """Validation happens at the HTTP layer"""
    task = store.create("")
    assert store.get(task.id)[1] is True


def test_len(store):
    store.create("A")
    store.create("B")
    assert len(store) == 2


def test_concurrent_creates_have_distinct_ids(store):
    workers = 16
    per_worker = 50

    def create_many(n):
        return [store.create(f"Task {n}-{i}").id for i in range(per_worker)]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(create_many, range(workers)))

    ids = [task_id for batch in results for task_id in batch]
    assert len(ids) == workers * per_worker
    assert len(set(ids)) == len(ids)
    assert len(store.get_all()) == workers * per_worker


def test_concurrent_creates_and_deletes_keep_count(store):
    existing = [store.create(f"Seed {i}").id for i in range(100)]

    def create(i):
        store.create(f"New {i}")
        return 1

    def delete(task_id):
        return 1 if store.delete(task_id) else 0

    def read(_):
        store.get_all()
        return 0

    with ThreadPoolExecutor(max_workers=12) as pool:
        created = pool.map(create, range(150))
        # Every seed id is deleted twice; only one call per id may succeed
        deleted = pool.map(delete, existing + existing)
        list(pool.map(read, range(50)))
        created = sum(created)
        deleted = sum(deleted)

    assert created == 150
    assert deleted == 100
    assert len(store.get_all()) == 100 + created - deleted


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    entered = threading.Event()

    def reader():
        with lock.read_locked():
            entered.set()

    lock.acquire_read()
    try:
        thread = threading.Thread(target=reader)
        thread.start()
        assert entered.wait(2)
    finally:
        lock.release_read()
    thread.join(2)


def test_writer_waits_for_reader():
    lock = ReadWriteLock()
    entered = threading.Event()

    def writer():
        with lock.write_locked():
            entered.set()

    lock.acquire_read()
    thread = threading.Thread(target=writer)
    thread.start()
    try:
        assert not entered.wait(0.2)
    finally:
        lock.release_read()
    assert entered.wait(2)
    thread.join(2)


def test_reader_waits_for_writer():
    lock = ReadWriteLock()
    entered = threading.Event()

    def reader():
        with lock.read_locked():
            entered.set()

    lock.acquire_write()
    thread = threading.Thread(target=reader)
    thread.start()
    try:
        assert not entered.wait(0.2)
    finally:
        lock.release_write()
    assert entered.wait(2)
    thread.join(2)


def test_separate_stores_are_isolated():
    first = TaskStore()
    second = TaskStore()
    task = first.create("Only here")

    assert second.get(task.id) == (None, False)
    assert second.get_all() == []
