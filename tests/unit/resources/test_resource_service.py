from datetime import timedelta

import pytest

from src.imagehost.domain.expiry_policy import ExpiryPolicy
from src.imagehost.events.event_hub import EventHub
from src.imagehost.events.event_models import EventKind
from src.imagehost.exceptions import (
    BlobStoreUnavailableError,
    NotFoundError,
    ResourceExpiredError,
    StoreUnavailableError,
)
from src.imagehost.expiry.scheduler import ExpiryScheduler
from src.imagehost.resources.resource_service import ResourceService
from src.imagehost.resources.upload_validation import ValidatedUpload
from tests.mocks.stores import FrozenClock, InMemoryBlobStore, InMemoryResourceRepository, RecordingTransport

UPLOAD = ValidatedUpload(filename="cat.png", content_type="image/png", data=b"png")


class _FailingCreateRepo(InMemoryResourceRepository):
    async def create(self, data):
        raise StoreUnavailableError("resource: database operation failed")


def _service(repo=None, blobs=None, clock=None):
    clock = clock or FrozenClock()
    repo = repo or InMemoryResourceRepository()
    blobs = blobs or InMemoryBlobStore()
    hub = EventHub()
    scheduler = ExpiryScheduler(hub, clock=clock)
    service = ResourceService(repo=repo, blob_store=blobs, hub=hub, scheduler=scheduler, clock=clock)
    return service, repo, blobs, hub, scheduler, clock


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fixed_upload_stores_blob_and_arms_timer() -> None:
    service, repo, blobs, _, scheduler, clock = _service()

    resource = await service.upload(UPLOAD, policy=ExpiryPolicy.fixed(timedelta(hours=1)), owner_id="alice")

    assert resource.expires_at == clock.now + timedelta(hours=1)
    assert resource.expires_on_open is False
    assert resource.family == "album"
    assert blobs.blobs[resource.storage_path] == b"png"
    assert resource.id in repo.rows
    assert scheduler.is_scheduled(resource.id)
    scheduler.cancel_all()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_on_open_guest_upload_waits_for_first_view() -> None:
    service, _, _, _, scheduler, _ = _service()

    resource = await service.upload(UPLOAD, policy=ExpiryPolicy.on_open())

    assert resource.expires_at is None
    assert resource.expires_on_open is True
    assert resource.owner_id is None
    assert resource.family == "guest"
    assert scheduler.pending_count() == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_private_collection_upload_never_expires() -> None:
    service, _, _, _, scheduler, _ = _service()

    resource = await service.upload(
        UPLOAD,
        policy=ExpiryPolicy.fixed(timedelta(days=1)),
        owner_id="alice",
        collection_id="private-album",
        shareable=False,
    )

    assert resource.expires_at is None
    assert resource.expires_on_open is False
    assert scheduler.pending_count() == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_record_insert_removes_blob() -> None:
    blobs = InMemoryBlobStore()
    service, _, _, _, _, _ = _service(repo=_FailingCreateRepo(), blobs=blobs)

    with pytest.raises(StoreUnavailableError):
        await service.upload(UPLOAD, policy=ExpiryPolicy.never())

    assert blobs.blobs == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_blob_failure_stops_upload_before_record() -> None:
    blobs = InMemoryBlobStore()
    blobs.unavailable = True
    service, repo, _, _, _, _ = _service(blobs=blobs)

    with pytest.raises(BlobStoreUnavailableError):
        await service.upload(UPLOAD, policy=ExpiryPolicy.never())

    assert repo.rows == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_active_rejects_expired_resources() -> None:
    service, repo, _, _, _, clock = _service()
    live = repo.add(expires_at=clock.now + timedelta(minutes=1))
    stale = repo.add(expires_at=clock.now - timedelta(seconds=1))

    assert (await service.get_active(live.id)).id == live.id
    with pytest.raises(ResourceExpiredError):
        await service.get_active(stale.id)
    with pytest.raises(NotFoundError):
        await service.get_active("missing")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_explicit_delete_cancels_timer_and_notifies() -> None:
    service, repo, blobs, hub, scheduler, clock = _service()
    resource = repo.add(expires_at=clock.now + timedelta(hours=1))
    blobs.blobs[resource.storage_path] = b"x"
    scheduler.schedule(resource.id, resource.expires_at)
    viewer = RecordingTransport()
    hub.subscribe(resource.id, viewer)

    outcome = await service.delete(resource.id)

    assert outcome.storage_failures == []
    assert resource.id not in repo.rows
    assert blobs.blobs == {}
    assert scheduler.is_scheduled(resource.id) is False
    assert viewer.events[-1] == (EventKind.DELETED, {"resourceId": resource.id, "reason": "removed"})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_explicit_delete_reports_blob_failure() -> None:
    service, repo, blobs, _, _, _ = _service()
    resource = repo.add()
    blobs.failing_paths.add(resource.storage_path)

    outcome = await service.delete(resource.id)

    assert outcome.storage_failures == [resource.storage_path]
    assert resource.id not in repo.rows


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_metadata_delete_keeps_timer_armed() -> None:
    service, repo, blobs, hub, scheduler, clock = _service()
    resource = repo.add(expires_at=clock.now + timedelta(hours=1))
    blobs.blobs[resource.storage_path] = b"x"
    scheduler.schedule(resource.id, resource.expires_at)
    viewer = RecordingTransport()
    hub.subscribe(resource.id, viewer)
    repo.fail_delete = True

    with pytest.raises(StoreUnavailableError):
        await service.delete(resource.id)

    assert resource.id in repo.rows
    assert scheduler.is_scheduled(resource.id)
    assert viewer.kinds() == [EventKind.CONNECTED]
    assert blobs.delete_calls == []
    scheduler.cancel_all()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_unknown_resource_raises() -> None:
    service, _, _, _, _, _ = _service()

    with pytest.raises(NotFoundError):
        await service.delete("missing")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_move_to_private_collection_clears_expiry() -> None:
    service, repo, _, hub, scheduler, clock = _service()
    armed = repo.add(expires_on_open=True, opened_at=clock.now, expires_at=clock.now + timedelta(seconds=60))
    fixed = repo.add(expires_at=clock.now + timedelta(days=1))
    scheduler.schedule(armed.id, armed.expires_at)
    viewer = RecordingTransport()
    hub.subscribe(armed.id, viewer)

    moved = await service.move_to_collection([armed.id, fixed.id], collection_id="vault", shareable=False)

    assert moved == [armed.id, fixed.id]
    for resource_id in moved:
        row = repo.rows[resource_id]
        assert (row.expires_at, row.expires_on_open, row.opened_at) == (None, False, None)
        assert row.collection_id == "vault"
    assert scheduler.pending_count() == 0
    assert viewer.events[-1] == (EventKind.UPDATED, {"resourceId": armed.id, "expires_at": None})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_move_to_shareable_collection_keeps_expiry() -> None:
    service, repo, _, _, _, clock = _service()
    deadline = clock.now + timedelta(days=1)
    resource = repo.add(expires_at=deadline)

    await service.move_to_collection([resource.id], collection_id="public", shareable=True)

    assert repo.rows[resource.id].expires_at == deadline
    assert repo.rows[resource.id].collection_id == "public"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rearm_timers_restores_future_deadlines() -> None:
    service, repo, _, _, scheduler, clock = _service()
    future = repo.add(expires_at=clock.now + timedelta(hours=1))
    repo.add(expires_at=clock.now - timedelta(hours=1))
    repo.add()

    count = await service.rearm_timers()

    assert count == 1
    assert scheduler.is_scheduled(future.id)
    scheduler.cancel_all()
