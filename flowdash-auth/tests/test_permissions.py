import httpx
import pytest
from fastapi import Depends, FastAPI

from flowdash_auth.api.deps import get_current_claims, require_permission, require_roles
from flowdash_auth.api.exception_handlers import register_exception_handlers
from flowdash_auth.models.user_account import Role
from flowdash_auth.services.auth_service import DEMO_PASSWORD
from flowdash_auth.services.permissions import (
    ROLE_PERMISSIONS,
    Permission,
    can_access_roles,
    has_permission,
    permissions_for,
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


def test_operator_is_view_only():
    assert [p.value for p in permissions_for(Role.OPERATOR)] == [
        "view_dashboard",
        "view_tasks",
        "view_performance",
        "view_assessments",
        "view_settings",
    ]


def test_director_only_permissions():
    director_only = set(permissions_for("director")) - set(permissions_for("manager"))
    assert director_only == {
        Permission.DELETE_TASKS,
        Permission.EXPORT_REPORTS,
        Permission.MANAGE_SETTINGS,
        Permission.VIEW_ALL_DATA,
        Permission.MANAGE_ORGANIZATION,
    }
    assert set(permissions_for("director")) == set(Permission)


def test_role_hierarchy_is_monotonic():
    operator = set(ROLE_PERMISSIONS[Role.OPERATOR])
    manager = set(ROLE_PERMISSIONS[Role.MANAGER])
    director = set(ROLE_PERMISSIONS[Role.DIRECTOR])

    assert operator <= manager
    assert operator <= director
    assert manager <= director


def test_has_permission_accepts_strings_and_enums():
    assert has_permission("manager", "manage_team")
    assert has_permission(Role.MANAGER, Permission.MANAGE_TEAM)
    assert not has_permission("operator", "manage_team")
    assert not has_permission("manager", "delete_tasks")


@pytest.mark.parametrize("role", ["admin", "", None, "DIRECTOR"])
def test_unknown_roles_fail_closed(role):
    assert permissions_for(role) == ()
    assert not has_permission(role, "view_dashboard")
    assert not can_access_roles(role, ["operator", "manager", "director"])


def test_unknown_permission_is_denied():
    assert not has_permission("director", "launch_rockets")


def test_can_access_roles():
    assert can_access_roles("manager", [Role.MANAGER, Role.DIRECTOR])
    assert can_access_roles(Role.DIRECTOR, ["director"])
    assert not can_access_roles("operator", ["manager", "director"])
    assert not can_access_roles("manager", [])


@pytest.fixture
async def guarded_client(service):
    service.ensure_demo_accounts()
    app = FastAPI()
    app.state.auth_service = service
    register_exception_handlers(app)

    @app.get("/team")
    def manage_team(claims=Depends(require_permission(Permission.MANAGE_TEAM))):
        return {"email": claims.email}

    @app.get("/organization")
    def organization(claims=Depends(require_roles(Role.DIRECTOR))):
        return {"email": claims.email}

    @app.get("/whoami")
    def whoami(claims=Depends(get_current_claims)):
        return {"role": claims.role.value}

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://flowdash") as client:
        yield client


def _bearer(service, email):
    return {"Authorization": f"Bearer {service.login(email, DEMO_PASSWORD).token}"}


@pytest.mark.anyio
async def test_require_permission_dependency(guarded_client, service):
    resp = await guarded_client.get("/team", headers=_bearer(service, "manager@demo.com"))
    assert resp.status_code == 200
    assert resp.json() == {"email": "manager@demo.com"}

    resp = await guarded_client.get("/team", headers=_bearer(service, "operator@demo.com"))
    assert resp.status_code == 403
    assert resp.json()["success"] is False


@pytest.mark.anyio
async def test_require_roles_dependency(guarded_client, service):
    resp = await guarded_client.get("/organization", headers=_bearer(service, "director@demo.com"))
    assert resp.status_code == 200

    resp = await guarded_client.get("/organization", headers=_bearer(service, "manager@demo.com"))
    assert resp.status_code == 403


@pytest.mark.anyio
async def test_missing_or_bad_bearer(guarded_client):
    assert (await guarded_client.get("/whoami")).status_code == 401
    assert (await guarded_client.get("/whoami", headers={"Authorization": "Basic abc"})).status_code == 401
    assert (await guarded_client.get("/whoami", headers={"Authorization": "Bearer nope"})).status_code == 401
