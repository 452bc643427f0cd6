from fastapi.testclient import TestClient


def signup(client: TestClient, email: str, password: str = "hunter2!", name: str = "Tester") -> dict:
    resp = client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["user"]
