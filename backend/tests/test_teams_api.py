# tests/test_teams_api.py
from __future__ import annotations

import pytest
from fastapi import Depends
from sqlalchemy import select

from backoffice.models.team import Team
from backoffice.models.team_member import TeamMember

from factories import add_membership, auth, create_team, create_user


@pytest.mark.asyncio
async def test_member_can_read_team(client, db):
    team = await create_team(db)
    u = await create_user(db, "member@example.com")
    await add_membership(db, team.id, u.id, "member")
    await db.commit()

    r = await client.get(f"/api/v1/teams/{team.id}", headers=auth(u))

    assert r.status_code == 200
    assert r.json()["id"] == str(team.id)


@pytest.mark.asyncio
async def test_no_token_is_401(client, db):
    team = await create_team(db)
    await db.commit()

    r = await client.get(f"/api/v1/teams/{team.id}")

    assert r.status_code == 401
    assert r.json()["detail"]["code"] == "unauthenticated"


@pytest.mark.asyncio
async def test_garbage_token_is_401(client, db):
    team = await create_team(db)
    await db.commit()

    r = await client.get(f"/api/v1/teams/{team.id}", headers={"Authorization": "Bearer nope"})

    assert r.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_is_401(client, db):
    team = await create_team(db)
    u = await create_user(db, "gone@example.com", is_active=False)
    await add_membership(db, team.id, u.id, "owner")
    await db.commit()

    r = await client.get(f"/api/v1/teams/{team.id}", headers=auth(u))

    assert r.status_code == 401


@pytest.mark.asyncio
async def test_non_member_is_403_not_member(client, db):
    team = await create_team(db)
    u = await create_user(db, "stranger@example.com")
    await db.commit()

    r = await client.get(f"/api/v1/teams/{team.id}", headers=auth(u))

    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "not_team_member"


@pytest.mark.asyncio
async def test_malformed_team_id_is_400(client, db):
    u = await create_user(db, "someone@example.com")
    await db.commit()

    r = await client.get("/api/v1/teams/not-a-uuid", headers=auth(u))

    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "team_id_invalid"


@pytest.mark.asyncio
async def test_viewer_cannot_update_team(client, db):
    team = await create_team(db)
    u = await create_user(db, "viewer@example.com")
    await add_membership(db, team.id, u.id, "viewer")
    await db.commit()

    r = await client.patch(f"/api/v1/teams/{team.id}", json={"name": "Renamed"}, headers=auth(u))

    assert r.status_code == 403
    body = r.json()
    assert body["detail"]["code"] == "rbac_forbidden"
    assert body["detail"]["required"] == ["team:update"]
    assert body["detail"]["role"] == "viewer"


@pytest.mark.asyncio
async def test_admin_can_update_team(client, db):
    team = await create_team(db)
    u = await create_user(db, "admin@example.com")
    await add_membership(db, team.id, u.id, "admin")
    await db.commit()

    r = await client.patch(f"/api/v1/teams/{team.id}", json={"name": "  New   Name "}, headers=auth(u))

    assert r.status_code == 200
    assert r.json()["name"] == "New Name"


@pytest.mark.asyncio
async def test_admin_cannot_delete_team(client, db, sessionmaker):
    team = await create_team(db)
    u = await create_user(db, "admin@example.com")
    await add_membership(db, team.id, u.id, "admin")
    await db.commit()

    r = await client.delete(f"/api/v1/teams/{team.id}", headers=auth(u))

    assert r.status_code == 403
    async with sessionmaker() as s:
        assert await s.get(Team, team.id) is not None


@pytest.mark.asyncio
async def test_owner_can_delete_team(client, db, sessionmaker):
    team = await create_team(db)
    u = await create_user(db, "owner@example.com")
    await add_membership(db, team.id, u.id, "owner")
    await db.commit()

    r = await client.delete(f"/api/v1/teams/{team.id}", headers=auth(u))

    assert r.status_code == 204
    async with sessionmaker() as s:
        assert await s.get(Team, team.id) is None
        rows = (await s.execute(select(TeamMember).where(TeamMember.team_id == team.id))).scalars().all()
        assert rows == []


@pytest.mark.asyncio
async def test_super_admin_reads_team_without_membership(client, db):
    team = await create_team(db)
    root = await create_user(db, "root@example.com", global_role="super_admin")
    await db.commit()

    r = await client.get(f"/api/v1/teams/{team.id}", headers=auth(root))
    assert r.status_code == 200

    r = await client.get(f"/api/v1/teams/{team.id}/access", headers=auth(root))
    assert r.status_code == 200
    body = r.json()
    assert body["role"] == "super_admin"
    assert body["is_global_override"] is True
    assert len(body["permissions"]) == 17


@pytest.mark.asyncio
async def test_access_summary_for_member(client, db):
    team = await create_team(db)
    u = await create_user(db, "member@example.com")
    await add_membership(db, team.id, u.id, "member")
    await db.commit()

    r = await client.get(f"/api/v1/teams/{team.id}/access", headers=auth(u))

    assert r.status_code == 200
    body = r.json()
    assert body["role"] == "member"
    assert body["is_global_override"] is False
    assert "subaccounts:create" in body["permissions"]
    assert "members:invite" not in body["permissions"]
    assert body["assignable_roles"] == []
    assert body["capabilities"]["can_manage_subaccounts"] is True
    assert body["capabilities"]["can_manage_members"] is False


@pytest.mark.asyncio
async def test_access_summary_from_team_header(client, db):
    t1 = await create_team(db, "One")
    t2 = await create_team(db, "Two")
    u = await create_user(db, "admin@example.com")
    await add_membership(db, t1.id, u.id, "viewer")
    await add_membership(db, t2.id, u.id, "admin")
    await db.commit()

    r = await client.get("/api/v1/teams/access", headers={**auth(u), "X-Team-Id": str(t2.id)})

    assert r.status_code == 200
    body = r.json()
    assert body["team_id"] == str(t2.id)
    assert body["role"] == "admin"
    assert body["assignable_roles"] == ["member", "viewer"]


@pytest.mark.asyncio
async def test_access_summary_without_team_header_is_400(client, db):
    u = await create_user(db, "someone@example.com")
    await db.commit()

    r = await client.get("/api/v1/teams/access", headers=auth(u))
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "team_id_required"

    r = await client.get("/api/v1/teams/access", headers={**auth(u), "X-Team-Id": "nope"})
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "team_id_invalid"


@pytest.mark.asyncio
async def test_team_header_for_foreign_team_is_403(client, db):
    team = await create_team(db)
    u = await create_user(db, "stranger@example.com")
    await db.commit()

    r = await client.get("/api/v1/teams/access", headers={**auth(u), "X-Team-Id": str(team.id)})

    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "not_team_member"


@pytest.mark.asyncio
async def test_only_owner_can_transfer_ownership(client, db, sessionmaker):
    team = await create_team(db)
    owner = await create_user(db, "owner@example.com")
    admin = await create_user(db, "admin@example.com")
    root = await create_user(db, "root@example.com", global_role="super_admin")
    await add_membership(db, team.id, owner.id, "owner")
    admin_m = await add_membership(db, team.id, admin.id, "admin")
    await db.commit()

    payload = {"member_id": str(admin_m.id)}

    r = await client.post(f"/api/v1/teams/{team.id}/transfer-ownership", json=payload, headers=auth(admin))
    assert r.status_code == 403
    assert r.json()["detail"]["required"] == ["owner"]

    # literal role allowlist: the global override is not an owner
    r = await client.post(f"/api/v1/teams/{team.id}/transfer-ownership", json=payload, headers=auth(root))
    assert r.status_code == 403

    r = await client.post(f"/api/v1/teams/{team.id}/transfer-ownership", json=payload, headers=auth(owner))
    assert r.status_code == 204

    async with sessionmaker() as s:
        roles = {
            m.user_id: m.role
            for m in (await s.execute(select(TeamMember).where(TeamMember.team_id == team.id))).scalars()
        }
    assert roles == {owner.id: "admin", admin.id: "owner"}


@pytest.mark.asyncio
async def test_store_outage_is_500_not_403(app, client, db):
    from backoffice.api.deps.auth import get_context_resolver
    from backoffice.auth.context import ContextResolver
    from backoffice.crud.identity import BearerTokenIdentity, SqlProfileStore
    from backoffice.db.session import get_db

    class BrokenMemberships:
        async def get_membership(self, actor_id, team_id):
            raise ConnectionError("membership store unreachable")

    async def _broken_resolver(session=Depends(get_db)):
        return ContextResolver(
            identity=BearerTokenIdentity(session),
            profiles=SqlProfileStore(session),
            memberships=BrokenMemberships(),
        )

    team = await create_team(db)
    u = await create_user(db, "member@example.com")
    await add_membership(db, team.id, u.id, "member")
    await db.commit()

    app.dependency_overrides[get_context_resolver] = _broken_resolver

    r = await client.get(f"/api/v1/teams/{team.id}", headers=auth(u))

    assert r.status_code == 500
    assert r.json()["detail"]["code"] == "authorization_unavailable"
