from gearguard.models import UserRole


def test_create_team_with_members(client, make_user, auth_headers):
    manager = make_user(UserRole.MANAGER)
    tech = make_user(UserRole.TECHNICIAN, name="Nia Tech")

    response = client.post(
        "/api/teams/",
        json={"name": "HVAC", "specialization": "Cooling", "team_lead_id": str(tech.id),
              "member_ids": [str(tech.id)]},
        headers=auth_headers(manager),
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["member_ids"] == [str(tech.id)]
    assert data["member_count"] == 1
    assert data["team_lead_id"] == str(tech.id)

    response = client.get("/api/users/", params={"team_id": data["id"]}, headers=auth_headers(manager))
    assert [u["id"] for u in response.json()] == [str(tech.id)]


def test_team_name_is_unique(client, world, auth_headers):
    response = client.post("/api/teams/", json={"name": "Mechanics"}, headers=auth_headers(world.manager))
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "name"


def test_team_writes_need_manager(client, world, auth_headers):
    response = client.post("/api/teams/", json={"name": "Robotics"}, headers=auth_headers(world.technician))
    assert response.status_code == 403

    response = client.get("/api/teams/", headers=auth_headers(world.technician))
    assert [t["name"] for t in response.json()] == ["Electricians", "Mechanics"]


def test_update_team_members(client, world, auth_headers):
    response = client.put(
        f"/api/teams/{world.team.id}",
        json={"specialization": "Heavy machinery", "member_ids": [str(world.technician.id)]},
        headers=auth_headers(world.manager),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["specialization"] == "Heavy machinery"
    assert data["member_ids"] == [str(world.technician.id)]


def test_delete_team_in_use_is_refused(client, world, auth_headers):
    headers = auth_headers(world.manager)
    assert client.delete(f"/api/teams/{world.team.id}", headers=headers).status_code == 400

    response = client.post("/api/teams/", json={"name": "Temporary"}, headers=headers)
    team_id = response.json()["id"]
    assert client.delete(f"/api/teams/{team_id}", headers=headers).status_code == 204
    assert client.get(f"/api/teams/{team_id}", headers=headers).status_code == 404


def test_list_users_by_role(client, world, auth_headers):
    response = client.get("/api/users/", params={"role": "Technician"}, headers=auth_headers(world.admin))
    assert {u["name"] for u in response.json()} == {"Tina Tech", "Tom Teammate", "Olga Outsider"}

    response = client.get("/api/users/", headers=auth_headers(world.requester))
    assert response.status_code == 403


def test_list_technicians_open_to_any_user(client, world, auth_headers):
    response = client.get("/api/users/technicians", headers=auth_headers(world.requester))
    assert response.status_code == 200
    assert [u["name"] for u in response.json()] == ["Olga Outsider", "Tina Tech", "Tom Teammate"]
    assert set(response.json()[0]) == {"id", "name", "email"}

    response = client.get(
        "/api/users/technicians",
        params={"team_id": str(world.team.id)},
        headers=auth_headers(world.requester),
    )
    assert [u["name"] for u in response.json()] == ["Tina Tech", "Tom Teammate"]

    assert client.get("/api/users/technicians").status_code in (401, 403)
