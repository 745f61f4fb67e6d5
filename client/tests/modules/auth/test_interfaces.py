from modules.auth.api_client import AuthApiClient
from modules.auth.interfaces import IAuthApi, ISessionStorage, ISessionStore
from modules.auth.service import SessionManager
from modules.auth.storage import JsonFileStorage, MemoryStorage

from helpers import GatedAuthApi


class TestAuthInterfaces:
    def test_api_client_implements_interface(self, http_client):
        """AuthApiClient should satisfy IAuthApi."""
        assert isinstance(AuthApiClient(http_client), IAuthApi)

    def test_test_double_implements_interface(self):
        assert isinstance(GatedAuthApi(), IAuthApi)

    def test_storages_implement_interface(self, tmp_path):
        assert isinstance(MemoryStorage(), ISessionStorage)
        assert isinstance(JsonFileStorage(tmp_path / "s.json"), ISessionStorage)

    def test_session_manager_is_a_session_store(self, session):
        """Route guards depend on ISessionStore; SessionManager must fit it."""
        assert isinstance(session, ISessionStore)

    def test_interface_methods_exist(self):
        for method in ["login", "register", "me", "update_profile", "update_password"]:
            assert hasattr(IAuthApi, method)
            assert callable(getattr(AuthApiClient, method))
