import httplib2
import pytest
from googleapiclient.errors import HttpError
from sqlmodel import select

from flowshare.models import ExternalSource, Task
from flowshare.services.source_sync import SourceSyncService
from flowshare.services.tasks import TaskService


class FakeClient:
    tasklist_id = "list-1"

    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error
        self.inserted = []
        self.patched = []
        self.gone = set()

    def list_items(self):
        if self.error is not None:
            raise self.error
        return list(self.items)

    def insert(self, task):
        self.inserted.append(task.title)
        return f"list-1:new{len(self.inserted)}"

    def patch(self, external_id, task):
        self.patched.append(external_id)
        if external_id in self.gone:
            return None
        return {"id": external_id}


@pytest.fixture
def tasks(session_factory, hub):
    return TaskService(session_factory=session_factory, hub=hub)


@pytest.fixture
def sync(tasks, session_factory):
    return SourceSyncService(tasks, session_factory=session_factory)


@pytest.fixture
def source(session_factory):
    with session_factory() as s:
        src = ExternalSource(person_id=5, provider="google_tasks", access_token="tok")
        s.add(src)
        s.commit()
        s.refresh(src)
        return src


def _all_tasks(session_factory):
    with session_factory() as s:
        return list(s.exec(select(Task).order_by(Task.id)))


def test_pull_imports_dated_items_into_day_buckets(sync, source, session_factory):
    client = FakeClient(
        items=[
            {"id": "a", "title": "Dentist", "due": "2024-06-03T00:00:00.000Z", "status": "needsAction"},
            {"id": "b", "title": "Someday"},
            {"id": "c", "title": "Removed", "deleted": True, "due": "2024-06-04T00:00:00Z"},
        ]
    )
    result = sync.pull(source, client)
    assert result.as_dict() == {"imported": 1, "created": 1, "updated": 0, "skipped": 1}

    (task,) = _all_tasks(session_factory)
    assert task.title == "Dentist"
    assert (task.bucket_type, task.bucket_date, task.due_date) == ("day", "2024-06-03", "2024-06-03")
    assert task.person_id == 5
    assert (task.source_id, task.external_id) == (source.id, "list-1:a")


def test_pull_twice_updates_instead_of_duplicating(sync, source, session_factory):
    item = {"id": "a", "title": "Dentist", "due": "2024-06-03T00:00:00Z"}
    sync.pull(source, FakeClient(items=[item]))
    moved = dict(item, title="Dentist (moved)", due="2024-06-05T10:00:00Z", status="completed")
    result = sync.pull(source, FakeClient(items=[moved]))
    assert (result.created, result.updated) == (0, 1)

    (task,) = _all_tasks(session_factory)
    assert task.title == "Dentist (moved)"
    assert (task.bucket_date, task.due_time, task.status) == ("2024-06-05", "10:00", "done")


def test_same_external_id_in_another_source_is_separate(sync, source, session_factory):
    with session_factory() as s:
        other = ExternalSource(person_id=6, provider="google_tasks", access_token="tok")
        s.add(other)
        s.commit()
        s.refresh(other)
    item = {"id": "a", "title": "Shared id", "due": "2024-06-03T00:00:00Z"}
    sync.pull(source, FakeClient(items=[item]))
    sync.pull(other, FakeClient(items=[item]))
    assert [t.person_id for t in _all_tasks(session_factory)] == [5, 6]


def test_pull_rejects_unknown_provider(sync, source):
    source.provider = "ics"
    with pytest.raises(ValueError):
        sync.pull(source, FakeClient())


def test_pull_reraises_http_errors(sync, source):
    error = HttpError(httplib2.Response({"status": 503}), b"unavailable")
    with pytest.raises(HttpError):
        sync.pull(source, FakeClient(error=error))


def test_push_inserts_then_patches(sync, tasks, source):
    task = tasks.create("Call mum", bucket_type="day", bucket_date="2024-06-03")
    client = FakeClient()
    assert sync.push(task, client, source) == "list-1:new1"
    linked = tasks.get(task.id)
    assert (linked.source_id, linked.external_id) == (source.id, "list-1:new1")

    assert sync.push(linked, client) == "list-1:new1"
    assert client.patched == ["list-1:new1"]
    assert client.inserted == ["Call mum"]


def test_push_recreates_missing_remote_item(sync, tasks, source):
    task = tasks.create("Call mum", bucket_type="day", bucket_date="2024-06-03")
    client = FakeClient()
    sync.push(task, client, source)
    client.gone.add("list-1:new1")
    assert sync.push(tasks.get(task.id), client) == "list-1:new2"
    assert tasks.get(task.id).external_id == "list-1:new2"
