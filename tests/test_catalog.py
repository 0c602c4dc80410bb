import uuid

from conftest import create_artist, create_label, create_release


async def test_artist_crud(client, manager_headers, admin_headers):
    artist = await create_artist(client, manager_headers, "Night Owls")
    assert artist["social_links"] == {}

    response = await client.put(
        f"/artist/{artist['id']}",
        json={"bio": "Late shows only", "social_links": {"instagram": "@owls"}},
        headers=manager_headers,
    )
    assert response.status_code == 200
    updated = response.json()["artist"]
    assert updated["name"] == "Night Owls"
    assert updated["bio"] == "Late shows only"
    assert updated["social_links"] == {"instagram": "@owls"}

    response = await client.get(f"/artist/{artist['id']}", headers=manager_headers)
    assert response.json()["artist"]["bio"] == "Late shows only"

    response = await client.delete(f"/artist/{artist['id']}", headers=admin_headers)
    assert response.status_code == 200
    response = await client.get(f"/artist/{artist['id']}", headers=manager_headers)
    assert response.status_code == 404


async def test_artist_requires_name(client, manager_headers):
    response = await client.post("/artist", json={"bio": "anonymous"}, headers=manager_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Artist name is required"


async def test_duplicate_artist_name_rejected(client, manager_headers):
    await create_artist(client, manager_headers, "Echo")

    response = await client.post("/artist", json={"name": "Echo"}, headers=manager_headers)

    assert response.status_code == 400


async def test_rename_artist_onto_existing_name_rejected(client, manager_headers):
    await create_artist(client, manager_headers, "Echo")
    other = await create_artist(client, manager_headers, "Delta")

    response = await client.put(f"/artist/{other['id']}", json={"name": "Echo"}, headers=manager_headers)

    assert response.status_code == 400


async def test_artist_role_checks(client, artist_headers, manager_headers):
    response = await client.post("/artist", json={"name": "Self Made"}, headers=artist_headers)
    assert response.status_code == 403

    artist = await create_artist(client, manager_headers)
    response = await client.delete(f"/artist/{artist['id']}", headers=manager_headers)
    assert response.status_code == 403

    response = await client.get("/artist", headers=artist_headers)
    assert response.status_code == 200


async def test_artists_listed_by_name_with_search(client, manager_headers):
    for name in ("Zed", "alpha", "Mid_Point", "Midway"):
        await create_artist(client, manager_headers, name)

    response = await client.get("/artist", headers=manager_headers)
    names = [a["name"] for a in response.json()["artists"]]
    assert names == sorted(names)
    assert response.json()["pagination"]["total"] == 4

    response = await client.get("/artist", params={"search": "mid_"}, headers=manager_headers)
    assert [a["name"] for a in response.json()["artists"]] == ["Mid_Point"]


async def test_delete_artist_with_releases_blocked(client, manager_headers, admin_headers):
    artist = await create_artist(client, manager_headers)
    await create_release(client, manager_headers, artist["id"])

    response = await client.delete(f"/artist/{artist['id']}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete artist with existing releases"


async def test_label_crud(client, manager_headers, admin_headers):
    label = await create_label(client, manager_headers, "Blue Tape")
    assert label["description"] == ""

    response = await client.put(
        f"/label/{label['id']}",
        json={"website": "https://bluetape.example", "contact_email": "hi@bluetape.example"},
        headers=manager_headers,
    )
    assert response.status_code == 200
    assert response.json()["label"]["website"] == "https://bluetape.example"

    response = await client.get("/label", params={"search": "blue"}, headers=manager_headers)
    assert [lbl["name"] for lbl in response.json()["labels"]] == ["Blue Tape"]


async def test_duplicate_label_rejected(client, manager_headers):
    await create_label(client, manager_headers, "Blue Tape")

    response = await client.post("/label", json={"name": "Blue Tape"}, headers=manager_headers)

    assert response.status_code == 400


async def test_delete_referenced_label_rejected(client, manager_headers, admin_headers):
    artist = await create_artist(client, manager_headers)
    label = await create_label(client, manager_headers)
    await create_release(client, manager_headers, artist["id"], label_id=label["id"])

    response = await client.delete(f"/label/{label['id']}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete label with existing releases"


async def test_delete_unreferenced_label(client, manager_headers, admin_headers):
    label = await create_label(client, manager_headers)

    response = await client.delete(f"/label/{label['id']}", headers=admin_headers)

    assert response.status_code == 200
    response = await client.get(f"/label/{label['id']}", headers=manager_headers)
    assert response.status_code == 404


async def test_missing_label_is_not_found(client, manager_headers):
    response = await client.get(f"/label/{uuid.uuid4()}", headers=manager_headers)

    assert response.status_code == 404


async def test_update_artist_clears_optional_text(client, manager_headers):
    artist = await create_artist(client, manager_headers, "Night Owls")
    await client.put(
        f"/artist/{artist['id']}",
        json={"bio": "Late shows only", "phone": "555-0100"},
        headers=manager_headers,
    )

    response = await client.put(f"/artist/{artist['id']}", json={"bio": "", "phone": ""}, headers=manager_headers)

    assert response.status_code == 200
    updated = response.json()["artist"]
    assert updated["name"] == "Night Owls"
    assert updated["bio"] == ""
    assert updated["phone"] == ""


async def test_update_artist_rejects_blank_name(client, manager_headers):
    artist = await create_artist(client, manager_headers, "Night Owls")

    response = await client.put(f"/artist/{artist['id']}", json={"name": "  "}, headers=manager_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Artist name is required"
    response = await client.get(f"/artist/{artist['id']}", headers=manager_headers)
    assert response.json()["artist"]["name"] == "Night Owls"


async def test_update_label_clears_optional_text(client, manager_headers):
    label = await create_label(client, manager_headers, "Blue Tape")
    await client.put(
        f"/label/{label['id']}",
        json={"description": "Cassette only", "website": "https://bluetape.example"},
        headers=manager_headers,
    )

    response = await client.put(
        f"/label/{label['id']}",
        json={"description": "", "website": ""},
        headers=manager_headers,
    )

    assert response.status_code == 200
    updated = response.json()["label"]
    assert updated["name"] == "Blue Tape"
    assert updated["description"] == ""
    assert updated["website"] == ""


async def test_update_label_rejects_blank_name(client, manager_headers):
    label = await create_label(client, manager_headers, "Blue Tape")

    response = await client.put(f"/label/{label['id']}", json={"name": ""}, headers=manager_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Label name is required"
