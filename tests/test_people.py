"""Tests for the DJ roster, producers and DJ media."""

import uuid

import pytest
from sqlalchemy import select

from djagency.core.errors import DomainError, ErrorKind, NotFoundError, PermissionDeniedError, ValidationError
from djagency.models import MediaCategory, MediaFile, Producer, Profile
from djagency.services import djs as dj_service
from djagency.services import media as media_service
from djagency.services import producers as producer_service
from djagency.services.media import guess_category


class TestDJRoster:
    """DJ profile CRUD."""

    async def test_list_sorted_by_artist_name(self, db, producer, dj_a, dj_b):
        db.add(Profile(role="dj", email="zeca@example.com", full_name="aaron Zeca"))
        await db.flush()

        names = [dj.display_name for dj in await dj_service.list_djs(db)]
        assert names == ["aaron Zeca", "DJ Alice", "DJ Bruno"]

    async def test_create_and_update(self, db):
        dj = await dj_service.create_dj(db, {
            "email": "nova@example.com",
            "full_name": "Nova Silva",
            "artist_name": "Nova",
            "unknown": "ignored",
        })
        assert dj.role == "dj"

        updated = await dj_service.update_dj(db, dj.id, {"genre": "Techno", "role": "admin"})
        assert updated.genre == "Techno"
        assert updated.role == "dj"

    async def test_create_duplicate_id(self, db, dj_a):
        with pytest.raises(DomainError) as exc_info:
            await dj_service.create_dj(db, {"id": dj_a.id, "email": "x@example.com", "full_name": "X"})
        assert exc_info.value.kind == ErrorKind.CONFLICT

    async def test_get_rejects_non_dj(self, db, producer):
        with pytest.raises(NotFoundError):
            await dj_service.get_dj(db, producer.id)

    async def test_delete_removes_media(self, db, storage, dj_a):
        await media_service.upload_media(db, storage, dj_a.id, dj_a, "kit.pdf", b"%PDF", "application/pdf")

        await dj_service.delete_dj(db, dj_a.id)

        assert (await db.execute(select(MediaFile))).scalars().all() == []
        with pytest.raises(NotFoundError):
            await dj_service.get_dj(db, dj_a.id)

    async def test_avatar_upload(self, db, storage_client, storage, dj_a):
        url = await dj_service.upload_dj_avatar(db, storage, dj_a.id, "me.png", b"png", "image/png")

        bucket, path, _, options = storage_client.uploads[0]
        assert bucket == "dj-avatars"
        assert path.startswith(f"dj-avatars/dj_avatar_{dj_a.id}_")
        assert path.endswith(".png")
        assert options["content-type"] == "image/png"
        assert dj_a.avatar_url == url


class TestProducers:
    """Producer profiles merged with company rows."""

    async def test_profile_only_producer(self, db, producer):
        records = await producer_service.list_producers(db)
        assert len(records) == 1
        assert records[0].name == "Paulo Produtor"
        assert records[0].company_name == "Paulo Produtor"
        assert records[0].email == producer.email
        assert records[0].has_company_record is False

    async def test_create_with_company(self, db):
        record = await producer_service.create_producer(db, {
            "email": "contato@festas.com.br",
            "full_name": "Maria Souza",
            "company_name": "Festas Ltda",
            "fantasy_name": "Festas SP",
            "cnpj": "12.345.678/0001-90",
        })
        assert record.name == "Festas SP"
        assert record.company_name == "Festas Ltda"
        assert record.cnpj == "12.345.678/0001-90"
        assert record.has_company_record is True

    async def test_sorted_case_insensitively(self, db, producer):
        await producer_service.create_producer(db, {
            "email": "a@example.com", "full_name": "A", "company_name": "alpha eventos",
        })
        names = [record.name for record in await producer_service.list_producers(db)]
        assert names == ["alpha eventos", "Paulo Produtor"]

    async def test_update_creates_company_row(self, db, producer):
        record = await producer_service.update_producer(db, producer.id, {"company_name": "PP Eventos", "city": "Recife"})

        assert record.has_company_record is True
        assert record.company_name == "PP Eventos"
        assert record.city == "Recife"
        rows = (await db.execute(select(Producer).where(Producer.profile_id == producer.id))).scalars().all()
        assert len(rows) == 1

    async def test_delete(self, db):
        record = await producer_service.create_producer(db, {
            "email": "b@example.com", "full_name": "B", "company_name": "Beta",
        })
        await producer_service.delete_producer(db, record.id)

        with pytest.raises(NotFoundError):
            await producer_service.get_producer(db, record.id)
        assert (await db.execute(select(Producer))).scalars().all() == []


class TestMedia:
    """DJ media uploads."""

    @pytest.mark.parametrize(
        "mime, category",
        [
            ("image/jpeg", MediaCategory.PHOTO),
            ("audio/mpeg", MediaCategory.AUDIO),
            ("video/mp4", MediaCategory.VIDEO),
            ("application/pdf", MediaCategory.DOCUMENT),
            (None, MediaCategory.OTHER),
        ],
    )
    def test_guess_category(self, mime, category):
        assert guess_category(mime) == category

    async def test_upload_and_list(self, db, storage_client, storage, dj_a):
        media = await media_service.upload_media(db, storage, dj_a.id, dj_a, "set.mp3", b"ID3", "audio/mpeg")

        assert media.file_type == "audio"
        assert media.file_size == 3
        assert media.storage_path.startswith(f"{dj_a.id}/audio/")
        assert storage_client.uploads[0][0] == "dj-media"

        assert [m.id for m in await media_service.list_media(db, dj_a.id, "audio")] == [media.id]
        assert await media_service.list_media(db, dj_a.id, "photo") == []

    async def test_other_dj_cannot_upload(self, db, storage, dj_a, dj_b):
        with pytest.raises(PermissionDeniedError):
            await media_service.upload_media(db, storage, dj_a.id, dj_b, "x.jpg", b"jpg", "image/jpeg")

    async def test_unknown_category(self, db, storage, dj_a):
        with pytest.raises(ValidationError):
            await media_service.upload_media(db, storage, dj_a.id, dj_a, "x.bin", b"x", category="mixtape")

    async def test_delete_removes_object(self, db, storage_client, storage, admin, dj_a):
        media = await media_service.upload_media(db, storage, dj_a.id, dj_a, "p.jpg", b"jpg", "image/jpeg")

        await media_service.delete_media(db, storage, media.id, admin)

        assert storage_client.removed == [("dj-media", [media.storage_path])]
        assert await media_service.list_media(db, dj_a.id) == []

    async def test_failed_write_discards_uploaded_object(self, db, storage_client, storage, dj_a, monkeypatch):
        async def broken_flush(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(db, "flush", broken_flush)

        with pytest.raises(RuntimeError):
            await media_service.upload_media(db, storage, dj_a.id, dj_a, "p.jpg", b"jpg", "image/jpeg")

        bucket, path, _, _ = storage_client.uploads[0]
        assert storage_client.removed == [(bucket, [path])]

    async def test_object_kept_when_row_delete_fails(self, db, storage_client, storage, admin, dj_a, monkeypatch):
        media = await media_service.upload_media(db, storage, dj_a.id, dj_a, "p.jpg", b"jpg", "image/jpeg")

        async def broken_flush(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(db, "flush", broken_flush)

        with pytest.raises(RuntimeError):
            await media_service.delete_media(db, storage, media.id, admin)
        assert storage_client.removed == []

    async def test_delete_unknown(self, db, storage, admin):
        with pytest.raises(NotFoundError):
            await media_service.delete_media(db, storage, uuid.uuid4(), admin)


class TestPeopleAPI:
    """HTTP surface of the DJ, producer and media routers."""

    async def test_dj_updates_own_profile(self, client, current_user, dj_a):
        current_user["profile"] = dj_a
        response = await client.put(f"/djs/{dj_a.id}", json={"bio": "House music"})
        assert response.status_code == 200
        assert response.json()["bio"] == "House music"

    async def test_dj_cannot_update_other(self, client, current_user, dj_a, dj_b):
        current_user["profile"] = dj_a
        response = await client.put(f"/djs/{dj_b.id}", json={"bio": "x"})
        assert response.status_code == 403

    async def test_producers_admin_only(self, client, current_user, producer):
        response = await client.get("/producers")
        assert response.status_code == 200
        assert response.json()[0]["name"] == "Paulo Produtor"

        current_user["profile"] = producer
        response = await client.get("/producers")
        assert response.status_code == 403

    async def test_media_upload(self, client, current_user, dj_a):
        current_user["profile"] = dj_a
        response = await client.post(
            f"/djs/{dj_a.id}/media",
            data={"category": "photo"},
            files={"file": ("press.jpg", b"jpeg-bytes", "image/jpeg")},
        )
        assert response.status_code == 201
        assert response.json()["file_type"] == "photo"

        response = await client.get(f"/djs/{dj_a.id}/media")
        assert len(response.json()) == 1
