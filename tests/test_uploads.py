import uuid

from labeldesk.core.config import app_settings

from conftest import auth, register

PDF_BYTES = b"%PDF-1.4\n" + b"0" * 64


async def test_upload_single(client, artist_user, artist_headers, storage):
    response = await client.post(
        "/uploads/single",
        files={"file": ("press kit.pdf", PDF_BYTES, "application/pdf")},
        headers=artist_headers,
    )

    assert response.status_code == 201
    record = response.json()["file"]
    assert record["original_name"] == "press kit.pdf"
    assert record["mime_type"] == "application/pdf"
    assert record["file_size"] == len(PDF_BYTES)
    assert record["uploaded_by"] == artist_user["user"]["id"]
    assert record["form_type"] == "file_upload"
    assert record["filename"].endswith(".pdf")
    assert record["file_url"] == f"/uploads/{record['filename']}"
    assert await storage.file_exists(record["filename"])


async def test_upload_single_without_file(client, artist_headers):
    response = await client.post("/uploads/single", data={"note": "nothing"}, headers=artist_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "No file uploaded"


async def test_upload_rejects_disallowed_type(client, artist_headers, storage):
    response = await client.post(
        "/uploads/single",
        files={"file": ("run.sh", b"#!/bin/sh", "text/x-shellscript")},
        headers=artist_headers,
    )

    assert response.status_code == 400
    assert not list(storage.root.rglob("*.sh"))


async def test_upload_rejects_oversized_file(client, artist_headers, monkeypatch):
    monkeypatch.setattr(app_settings, "max_upload_size", 16)

    response = await client.post(
        "/uploads/single",
        files={"file": ("big.pdf", PDF_BYTES, "application/pdf")},
        headers=artist_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "File too large"


async def test_upload_requires_authentication(client):
    response = await client.post("/uploads/single", files={"file": ("a.pdf", PDF_BYTES, "application/pdf")})

    assert response.status_code == 401


async def test_upload_multiple(client, artist_headers):
    files = [
        ("files", ("one.mp3", b"ID3" + b"1" * 16, "audio/mpeg")),
        ("files", ("two.png", b"\x89PNG" + b"2" * 16, "image/png")),
    ]

    response = await client.post("/uploads/multiple", files=files, headers=artist_headers)

    assert response.status_code == 201
    records = response.json()["files"]
    assert [r["original_name"] for r in records] == ["one.mp3", "two.png"]
    assert records[0]["file_url"].startswith("/uploads/audio/")
    assert records[1]["file_url"].startswith("/uploads/covers/")


async def test_upload_multiple_is_all_or_nothing(client, artist_headers, storage):
    files = [
        ("files", ("one.mp3", b"ID3" + b"1" * 16, "audio/mpeg")),
        ("files", ("bad.bin", b"\x00" * 16, "application/octet-stream")),
    ]

    response = await client.post("/uploads/multiple", files=files, headers=artist_headers)

    assert response.status_code == 400
    assert not list(storage.root.rglob("*.mp3"))

    response = await client.get("/uploads/my-uploads", headers=artist_headers)
    assert response.json()["pagination"]["total"] == 0


async def test_upload_multiple_limit(client, artist_headers):
    count = app_settings.max_files_per_request + 1
    files = [("files", (f"f{i}.pdf", PDF_BYTES, "application/pdf")) for i in range(count)]

    response = await client.post("/uploads/multiple", files=files, headers=artist_headers)

    assert response.status_code == 400


async def test_my_uploads_lists_only_own_newest_first(client, artist_headers):
    other = await register(client, "other")
    for name in ("first.pdf", "second.pdf"):
        await client.post(
            "/uploads/single",
            files={"file": (name, PDF_BYTES, "application/pdf")},
            headers=artist_headers,
        )
    await client.post(
        "/uploads/single",
        files={"file": ("theirs.pdf", PDF_BYTES, "application/pdf")},
        headers=auth(other["token"]),
    )

    response = await client.get("/uploads/my-uploads", params={"limit": 1}, headers=artist_headers)

    body = response.json()
    assert body["pagination"] == {"page": 1, "limit": 1, "total": 2, "pages": 2}
    assert [u["original_name"] for u in body["uploads"]] == ["second.pdf"]


async def test_delete_upload_permissions(client, artist_headers, admin_headers):
    response = await client.post(
        "/uploads/single",
        files={"file": ("mine.pdf", PDF_BYTES, "application/pdf")},
        headers=artist_headers,
    )
    upload_id = response.json()["file"]["id"]
    other = await register(client, "other")

    response = await client.delete(f"/uploads/{upload_id}", headers=auth(other["token"]))
    assert response.status_code == 403
    assert response.json()["error"] == "Permission denied"

    response = await client.delete(f"/uploads/{upload_id}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.delete(f"/uploads/{upload_id}", headers=admin_headers)
    assert response.status_code == 404


async def test_uploader_can_delete_own_upload(client, artist_headers):
    response = await client.post(
        "/uploads/single",
        files={"file": ("mine.pdf", PDF_BYTES, "application/pdf")},
        headers=artist_headers,
    )
    upload_id = response.json()["file"]["id"]

    response = await client.delete(f"/uploads/{upload_id}", headers=artist_headers)

    assert response.status_code == 200


async def test_delete_missing_upload(client, artist_headers):
    response = await client.delete(f"/uploads/{uuid.uuid4()}", headers=artist_headers)

    assert response.status_code == 404
