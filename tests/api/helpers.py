"""
Request helpers shared by the API tests.
"""

from fastapi.testclient import TestClient

PASSWORD = "secret123"


def signup(client: TestClient, username: str, password: str = PASSWORD) -> dict:
    response = client.post(
        "/api/v1/auth/signup",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client: TestClient, username: str, password: str = PASSWORD):
    return client.post("/api/v1/auth/login", json={"username": username, "password": password})


def signup_and_login(client: TestClient, username: str) -> dict:
    account = signup(client, username)
    assert login(client, username).status_code == 200
    return account


def upload(client: TestClient, title: str = "Sunset", **form) -> dict:
    response = client.post(
        "/api/v1/videos",
        data={"title": title, **form},
        files={"video_file": ("clip.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
    )
    assert response.status_code == 201, response.text
    return response.json()
