"""
Integration Tests for Artwork Endpoints

Tests saving, listing, lookup and certificate linking of artwork records.
"""

import pytest

from app.middleware.auth import create_access_token
from proof_engine import content_hash, prompt_hash

CREATOR_ADDRESS = "0x1111111111111111111111111111111111111111"
OTHER_ADDRESS = "0x2222222222222222222222222222222222222222"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def artwork_body(seed: str, **overrides) -> dict:
    body = {
        "contentHash": content_hash(seed.encode()),
        "promptHash": prompt_hash(f"prompt {seed}"),
        "ipfsCID": f"bafkrei{seed}",
        "modelUsed": "dall-e-3",
    }
    body.update(overrides)
    return body


@pytest.fixture
def saved_artwork(client, auth_headers) -> dict:
    response = client.post("/api/artworks", json=artwork_body("mine"), headers=auth_headers)
    assert response.status_code == 200
    return response.json()["artwork"]


def test_save_artwork_as_creator(client, auth_headers):
    response = client.post(
        "/api/artworks",
        json=artwork_body("one", contentHash="0x" + content_hash(b"one").upper()),
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["persisted"] is True
    assert data["artwork"]["id"] is not None
    assert data["artwork"]["contentHash"] == content_hash(b"one")
    assert data["artwork"]["creatorAddress"] == CREATOR_ADDRESS


def test_save_artwork_anonymously(client):
    """Without a token the record is attributed to the zero address."""
    response = client.post(
        "/api/artworks", json=artwork_body("anon", creatorAddress=OTHER_ADDRESS)
    )

    assert response.status_code == 200
    assert response.json()["artwork"]["creatorAddress"] == ZERO_ADDRESS


def test_save_artwork_anonymous_disabled(client, container, monkeypatch):
    monkeypatch.setattr(container.settings, "ALLOW_ANONYMOUS_REGISTRATION", False)
    response = client.post("/api/artworks", json=artwork_body("anon"))
    assert response.status_code == 401


def test_save_artwork_creator_mismatch(client, auth_headers):
    response = client.post(
        "/api/artworks",
        json=artwork_body("spoof", creatorAddress=OTHER_ADDRESS),
        headers=auth_headers,
    )

    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"


def test_save_artwork_rejects_short_hash(client, auth_headers):
    response = client.post(
        "/api/artworks", json=artwork_body("bad", contentHash="ab" * 25), headers=auth_headers
    )
    assert response.status_code == 400


def test_save_artwork_missing_fields(client, auth_headers):
    response = client.post(
        "/api/artworks", json={"contentHash": content_hash(b"x")}, headers=auth_headers
    )
    assert response.status_code == 422


def test_resave_updates_record(client, auth_headers, saved_artwork):
    response = client.post(
        "/api/artworks",
        json=artwork_body("mine", metadataURI="ipfs://bagaaierasecond"),
        headers=auth_headers,
    )

    artwork = response.json()["artwork"]
    assert artwork["id"] == saved_artwork["id"]
    assert artwork["metadataURI"] == "ipfs://bagaaierasecond"


def test_list_and_filter_artworks(client, auth_headers, other_auth_headers):
    client.post("/api/artworks", json=artwork_body("first"), headers=auth_headers)
    client.post("/api/artworks", json=artwork_body("second"), headers=other_auth_headers)

    everything = client.get("/api/artworks").json()
    assert everything["count"] == 2

    filtered = client.get("/api/artworks", params={"address": OTHER_ADDRESS.upper()})
    data = filtered.json()
    assert data["count"] == 1
    assert data["artworks"][0]["contentHash"] == content_hash(b"second")


def test_my_artworks(client, auth_headers, other_auth_headers, saved_artwork):
    client.post("/api/artworks", json=artwork_body("theirs"), headers=other_auth_headers)

    data = client.get("/api/artworks/my", headers=auth_headers).json()
    assert [a["contentHash"] for a in data["artworks"]] == [saved_artwork["contentHash"]]


def test_my_artworks_requires_authentication(client):
    assert client.get("/api/artworks/my").status_code == 401


def test_bearer_token_checked_against_container_secret(client, container, monkeypatch, auth_headers):
    monkeypatch.setattr(container.settings, "JWT_SECRET", "rotated-secret")

    stale = client.get("/api/artworks/my", headers=auth_headers)
    assert stale.status_code == 401
    assert stale.json()["code"] == "unauthorized"

    token = create_access_token(CREATOR_ADDRESS, "rotated-secret", container.settings.JWT_ALGORITHM)
    fresh = client.get("/api/artworks/my", headers={"Authorization": f"Bearer {token}"})
    assert fresh.status_code == 200


def test_get_artwork_not_found(client):
    response = client.get(f"/api/artworks/{content_hash(b'missing')}")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_get_artwork_malformed_hash(client):
    assert client.get("/api/artworks/abc123").status_code == 400


def test_link_certificate(client, auth_headers, saved_artwork):
    response = client.put(
        f"/api/artworks/{saved_artwork['contentHash']}/certificate",
        json={"certificateTokenId": 7},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["artwork"]["certificateTokenId"] == 7

    again = client.put(
        f"/api/artworks/{saved_artwork['contentHash']}/certificate",
        json={"certificateTokenId": 7},
        headers=auth_headers,
    )
    assert again.json()["artwork"]["certificateTokenId"] == 7


def test_link_certificate_by_other_creator(client, other_auth_headers, saved_artwork):
    response = client.put(
        f"/api/artworks/{saved_artwork['contentHash']}/certificate",
        json={"certificateTokenId": 7},
        headers=other_auth_headers,
    )

    assert response.status_code == 403
    assert response.json()["error"] == "Unauthorized"


def test_link_certificate_unknown_artwork(client, auth_headers):
    response = client.put(
        f"/api/artworks/{content_hash(b'missing')}/certificate",
        json={"certificateTokenId": 7},
        headers=auth_headers,
    )
    assert response.status_code == 404


def test_link_certificate_requires_authentication(client, saved_artwork):
    response = client.put(
        f"/api/artworks/{saved_artwork['contentHash']}/certificate",
        json={"certificateTokenId": 7},
    )
    assert response.status_code == 401
