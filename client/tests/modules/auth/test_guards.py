import json

import pytest

from shared.models import Role, UserRecord
from modules.auth.api_client import AuthApiClient
from modules.auth.exceptions import InsufficientPermissionsError, NotAuthenticatedError
from modules.auth.guards import (
    AccessDecision,
    check_access,
    dashboard_path,
    redirect_for,
    require_role,
)
from modules.auth.service import SessionManager
from modules.auth.storage import MemoryStorage, TOKEN_KEY, USER_KEY


class TestCheckAccess:
    def test_pending_while_restoring(self, session):
        """Nothing is decided before the session has been restored."""
        assert check_access(session) is AccessDecision.PENDING

    @pytest.mark.asyncio
    async def test_login_required_when_anonymous(self, session):
        await session.restore()
        assert check_access(session) is AccessDecision.LOGIN_REQUIRED
        assert check_access(session, ["admin"]) is AccessDecision.LOGIN_REQUIRED

    @pytest.mark.asyncio
    async def test_allow_any_authenticated(self, session):
        await session.restore()
        await session.login("customer@example.com", "customerpass")
        assert check_access(session) is AccessDecision.ALLOW

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "roles,expected",
        [
            (["seller"], AccessDecision.ALLOW),
            ("seller", AccessDecision.ALLOW),
            (Role.SELLER, AccessDecision.ALLOW),
            (["admin", "seller"], AccessDecision.ALLOW),
            (["admin"], AccessDecision.FORBIDDEN),
            ([Role.CUSTOMER], AccessDecision.FORBIDDEN),
        ],
    )
    async def test_role_restrictions(self, session, roles, expected):
        await session.restore()
        await session.login("seller@example.com", "sellerpass")
        assert check_access(session, roles) is expected

    @pytest.mark.asyncio
    async def test_optimistic_snapshot_counts_while_verifying(self, backend, http_client):
        """The cached account is honoured until verification settles."""
        admin = next(u for u in backend.users.values() if u["role"] == "admin")
        storage = MemoryStorage(
            {
                TOKEN_KEY: backend.token_for(admin),
                USER_KEY: json.dumps({"id": admin["_id"], "name": "Admin", "email": admin["email"], "role": "admin"}),
            }
        )
        session = SessionManager(AuthApiClient(http_client), storage, http_client)
        decisions = []
        session.subscribe(lambda snapshot: decisions.append((snapshot.status.value, check_access(session, ["admin"]))))

        await session.restore()

        assert ("verifying", AccessDecision.ALLOW) in decisions
        assert check_access(session, ["admin"]) is AccessDecision.ALLOW


class TestRedirects:
    def test_redirect_targets(self):
        assert redirect_for(AccessDecision.LOGIN_REQUIRED) == "/login"
        assert redirect_for(AccessDecision.FORBIDDEN) == "/unauthorized"
        assert redirect_for(AccessDecision.ALLOW) is None
        assert redirect_for(AccessDecision.PENDING) is None

    @pytest.mark.parametrize(
        "role,path",
        [("admin", "/admin"), ("seller", "/seller"), ("customer", "/customer"), ("wizard", "/unauthorized")],
    )
    def test_dashboard_path(self, role, path):
        user = UserRecord(id="u1", name="N", email="n@example.com", role=role)
        assert dashboard_path(user) == path

    def test_dashboard_path_without_user(self):
        assert dashboard_path(None) == "/login"


class TestRequireRole:
    @pytest.mark.asyncio
    async def test_returns_user_with_allowed_role(self, session):
        await session.restore()
        await session.login("admin@example.com", "adminpass")
        user = require_role(session, ["admin"])
        assert user.role is Role.ADMIN

    @pytest.mark.asyncio
    async def test_raises_for_other_role(self, session):
        await session.restore()
        await session.login("customer@example.com", "customerpass")
        with pytest.raises(InsufficientPermissionsError) as exc_info:
            require_role(session, [Role.ADMIN, "seller"])
        assert exc_info.value.details == {"required_roles": ["admin", "seller"], "user_role": "customer"}

    def test_raises_when_anonymous(self, session):
        with pytest.raises(NotAuthenticatedError):
            require_role(session, "admin")
