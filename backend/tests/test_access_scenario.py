"""End-to-end walk through role, grant and user administration."""
from conftest import login


def test_full_administration_scenario(client, admin_headers):
    h = admin_headers

    # Duplicate role names are rejected
    r = client.post("/roles", json={"name": "Sales", "description": "Sales team"}, headers=h)
    assert r.status_code == 201
    r = client.post("/roles", json={"name": "Sales", "description": "Sales team"}, headers=h)
    assert r.status_code == 409

    # Support gets customers + expenses
    support_id = client.post("/roles", json={"name": "Support"}, headers=h).json()["data"]["id"]
    r = client.put(f"/roles/{support_id}/modules", json={"modules": ["customers", "expenses"]}, headers=h)
    assert r.status_code == 200
    assert client.get(f"/roles/{support_id}/modules", headers=h).json()["data"] == ["customers", "expenses"]

    # Alice inherits them through her role
    r = client.post("/users", data={"firstName": "Alice", "lastName": "Smith", "email": "alice@acme.com",
                                    "password": "pw-alice", "role": "Support"}, headers=h)
    assert r.status_code == 201
    alice_id = r.json()["data"]["id"]
    assert r.json()["data"]["role_id"] == support_id
    alice_headers, _ = login(client, "alice@acme.com", "pw-alice")
    assert client.get(f"/user-modules/{alice_id}", headers=alice_headers).json()["data"] == ["customers", "expenses"]

    # Support cannot go while Alice holds it
    r = client.delete(f"/roles/{support_id}", headers=h)
    assert r.status_code == 409
    assert r.json()["userCount"] == 1
    assert r.json()["success"] is False

    # ...but can once she is gone
    assert client.delete(f"/users/{alice_id}", headers=h).status_code == 200
    assert client.delete(f"/roles/{support_id}", headers=h).status_code == 200

    # Admin stays untouchable
    admin_id = next(r["id"] for r in client.get("/roles", headers=h).json()["data"] if r["name"] == "Admin")
    r = client.put(f"/roles/{admin_id}", json={"name": "Superusers", "description": ""}, headers=h)
    assert r.status_code == 403
    names = [r["name"] for r in client.get("/roles", headers=h).json()["data"]]
    assert names.count("Admin") == 1
