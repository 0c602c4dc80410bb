from conftest import create_artist, create_label, create_release


async def test_validate_upc_available(client):
    response = await client.get("/form-validation/validate-upc", params={"upc": "555"})

    assert response.status_code == 200
    assert response.json() == {"valid": True, "message": "UPC code is available"}


async def test_validate_upc_taken(client, manager_headers):
    artist = await create_artist(client, manager_headers)
    await create_release(client, manager_headers, artist["id"], upc="555", title="Taken")

    response = await client.post("/form-validation/validate-upc", json={"upc": "555"})

    assert response.status_code == 200
    assert response.json() == {"valid": False, "message": "UPC code already exists for release: Taken"}


async def test_validate_upc_missing(client):
    response = await client.get("/form-validation/validate-upc")
    assert response.status_code == 400
    assert response.json()["error"] == "UPC code is required"

    response = await client.post("/form-validation/validate-upc", json={})
    assert response.status_code == 400


async def test_artist_and_label_options(client, manager_headers):
    for name in ("Beta", "Alpha", "Gamma"):
        await create_artist(client, manager_headers, name)
    await create_label(client, manager_headers, "Northern Lights")

    response = await client.get("/form-validation/artists")
    artists = response.json()["artists"]
    assert [a["name"] for a in artists] == ["Alpha", "Beta", "Gamma"]
    assert set(artists[0]) == {"id", "name"}

    response = await client.get("/form-validation/artists", params={"search": "amm"})
    assert [a["name"] for a in response.json()["artists"]] == ["Gamma"]

    response = await client.get("/form-validation/labels", params={"search": "north"})
    assert [lbl["name"] for lbl in response.json()["labels"]] == ["Northern Lights"]


async def test_static_lists(client):
    genres = (await client.get("/form-validation/genres")).json()["genres"]
    languages = (await client.get("/form-validation/languages")).json()["languages"]

    assert "Hip Hop" in genres and genres[-1] == "Other"
    assert {"code": "en", "name": "English"} in languages
