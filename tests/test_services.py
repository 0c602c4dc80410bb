import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from labeldesk.core.exceptions import BadRequestError
from labeldesk.models import Artist, ReleaseStatus, User, UserRole
from labeldesk.services import ArtistService, ReleaseService, ReleaseSubmission, UserService
from labeldesk.services.release_service import parse_status


@pytest.fixture
async def owner(db_session):
    user = User(username="owner", email="owner@example.com", password_hash="x", role=UserRole.MANAGER)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def fk_session(engine, session_factory):
    async with engine.connect() as conn:
        await conn.exec_driver_sql("PRAGMA foreign_keys=ON")
    async with session_factory() as session:
        yield session


async def test_get_or_create_artist_is_idempotent(db_session, owner):
    service = ArtistService(db_session)

    first = await service.get_or_create_artist("Luna Ray", owner.id)
    await db_session.commit()
    second = await service.get_or_create_artist("Luna Ray", owner.id)

    assert first.id == second.id
    count = (await db_session.execute(select(func.count(Artist.id)))).scalar_one()
    assert count == 1


async def test_get_or_create_artist_resolves_concurrent_insert(session_factory, owner, monkeypatch):
    async with session_factory() as other:
        other.add(Artist(name="Luna Ray", social_links={}, created_by=owner.id))
        await other.commit()

    async with session_factory() as session:
        service = ArtistService(session)
        real_lookup = service.get_artist_by_name
        calls = []

        async def stale_lookup(name):
            calls.append(name)
            if len(calls) == 1:
                return None
            return await real_lookup(name)

        monkeypatch.setattr(service, "get_artist_by_name", stale_lookup)

        artist = await service.get_or_create_artist("Luna Ray", owner.id)
        await session.commit()

        assert artist.name == "Luna Ray"
        assert len(calls) == 2
        count = (await session.execute(select(func.count(Artist.id)))).scalar_one()
        assert count == 1


async def test_apply_status_stamps_only_on_approval(db_session, owner):
    artist = Artist(name="Act", social_links={}, created_by=owner.id)
    db_session.add(artist)
    await db_session.flush()

    service = ReleaseService(db_session)
    release = service.build_release(owner.id, title="T", artist_id=artist.id)

    service.apply_status(release, ReleaseStatus.DELIVERED, owner.id)
    assert release.approved_at is None

    service.apply_status(release, ReleaseStatus.APPROVED, owner.id)
    assert release.approved_by == owner.id
    assert release.approved_at is not None


async def test_status_counts_omit_empty_statuses(db_session, owner):
    artist = Artist(name="Act", social_links={}, created_by=owner.id)
    db_session.add(artist)
    await db_session.flush()

    service = ReleaseService(db_session)
    service.build_release(owner.id, title="A", artist_id=artist.id, upc="1")
    rejected = service.build_release(owner.id, title="B", artist_id=artist.id, upc="2")
    rejected.status = ReleaseStatus.REJECTED
    await db_session.commit()

    assert await service.status_counts() == {"pending": 1, "rejected": 1}
    assert await service.status_counts(created_by=uuid.uuid4()) == {}


@pytest.mark.parametrize("value", ["approved", "takedown"])
def test_parse_status_accepts_workflow_values(value):
    assert parse_status(value).value == value


@pytest.mark.parametrize("value", ["Approved", "", None, "archived"])
def test_parse_status_rejects_other_values(value):
    with pytest.raises(BadRequestError):
        parse_status(value)


def test_submission_metadata_parsing():
    form = ReleaseSubmission(
        title="T",
        primaryArtist="A",
        genre="G",
        instrumental="TRUE",
        explicitContent="no",
        tags=" a, ,b ",
    )

    metadata = form.release_metadata()

    assert form.missing_required() is False
    assert metadata["instrumental"] is True
    assert metadata["explicitContent"] is False
    assert metadata["otherLsp"] is False
    assert metadata["tags"] == ["a", "b"]


def test_submission_missing_required():
    assert ReleaseSubmission(title="T", primaryArtist=" ", genre="G").missing_required() is True


async def test_release_commit_maps_lost_upc_race(db_session, owner, monkeypatch):
    artist = Artist(name="Act", social_links={}, created_by=owner.id)
    db_session.add(artist)
    await db_session.commit()

    service = ReleaseService(db_session)
    await service.create_release(owner.id, title="First", artist_id=artist.id, upc="555")

    real_check = service.ensure_upc_available
    checks = []

    async def stale_check(upc, exclude_id=None):
        checks.append(upc)
        if len(checks) > 1:
            await real_check(upc, exclude_id)

    monkeypatch.setattr(service, "ensure_upc_available", stale_check)

    with pytest.raises(BadRequestError) as excinfo:
        await service.create_release(owner.id, title="Second", artist_id=artist.id, upc="555")

    assert excinfo.value.message == "UPC already exists"
    assert checks == ["555", "555"]


async def test_release_commit_propagates_dangling_creator(fk_session):
    owner = User(username="owner", email="owner@example.com", password_hash="x", role=UserRole.MANAGER)
    fk_session.add(owner)
    await fk_session.flush()
    artist = Artist(name="Act", social_links={}, created_by=owner.id)
    fk_session.add(artist)
    await fk_session.commit()

    service = ReleaseService(fk_session)

    with pytest.raises(IntegrityError):
        await service.create_release(uuid.uuid4(), title="Orphan", artist_id=artist.id, upc="777000111")

    assert await service.find_by_upc("777000111") is None


async def test_user_commit_maps_lost_uniqueness_race(db_session, monkeypatch):
    service = UserService(db_session)
    await service.create_user("taken", "taken@example.com", "secret123")

    real_check = service._ensure_unique
    checks = []

    async def stale_check(username, email, exclude_id=None):
        checks.append(username)
        if len(checks) > 1:
            await real_check(username, email, exclude_id)

    monkeypatch.setattr(service, "_ensure_unique", stale_check)

    with pytest.raises(BadRequestError) as excinfo:
        await service.create_user("taken", "other@example.com", "secret123")

    assert excinfo.value.message == "User with this email or username already exists"
    assert checks == ["taken", "taken"]
