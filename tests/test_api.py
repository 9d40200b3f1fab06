"""Endpoint tests: status mapping, error bodies, protected routes and startup (FastAPI TestClient)."""

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from authcore.core.config import Settings, get_settings
from authcore.core.database import create_session_factory
from authcore.core.exceptions import HashingError, SecretUnavailableError
from authcore.core.security import BcryptPasswordHasher
from authcore.main import create_app, run
from authcore.services.credential_store import SqlCredentialStore
from authcore.services.credentials import CredentialService

TEST_SECRET = "unit-test-signing-secret-" + "k" * 64


def _unreachable_database():
    raise OperationalError("SELECT 1", {}, Exception("database is unreachable"))


class _FailingHasher:
    def hash(self, plain_password: str) -> str:
        raise HashingError()

    def verify(self, plain_password: str, hashed: str) -> bool:
        raise HashingError()


def _settings(tmpdir: str, **kwargs: object) -> Settings:
    """Settings for an isolated app on a SQLite file in tmpdir."""
    defaults = {
        "APP_ENV": "dev",
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmpdir}/api.db",
        "DB_CREATE_TABLES": True,
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": 4,
        "API_PREFIX": "",
    }
    defaults.update(kwargs)
    return Settings(**defaults)


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)
        self.client = TestClient(create_app(_settings(self._tmpdir.name)))
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def _signup(self, email: str = "a@x.com", password: str = "pw123", role: str | None = None) -> str:
        body: dict[str, str] = {"email": email, "password": password}
        if role is not None:
            body["role"] = role
        resp = self.client.post("/signup", json=body)
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["uid"]

    def _login(self, email: str = "a@x.com", password: str = "pw123") -> dict:
        resp = self.client.post("/login", json={"email": email, "password": password})
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()

    @staticmethod
    def _bearer(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


class TestCredentialEndpoints(ApiTestCase):
    def test_signup_confirmation_references_uid(self) -> None:
        resp = self.client.post("/signup", json={"email": "a@x.com", "password": "pw123"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertIn(data["uid"], data["message"])

    def test_duplicate_signup_is_400(self) -> None:
        self._signup()
        resp = self.client.post("/signup", json={"email": "a@x.com", "password": "pw123"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "USER_ALREADY_EXISTS")
        self.assertEqual(resp.json()["status"], "400 Bad Request")

    def test_login_statuses(self) -> None:
        self._signup()
        resp = self.client.post("/login", json={"email": "a@x.com", "password": "nope"})
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "wrong credentials")
        resp = self.client.post("/login", json={"email": "b@x.com", "password": "pw123"})
        self.assertEqual(resp.status_code, 404)

    def test_login_returns_token_pair(self) -> None:
        self._signup()
        data = self._login()
        self.assertEqual(set(data), {"token", "refresh_token"})

    def test_refresh_rotation(self) -> None:
        self._signup()
        r1 = self._login()["refresh_token"]
        resp = self.client.post("/refresh", json={"refresh_token": r1})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(set(data), {"access_token", "refresh_token"})
        self.assertNotEqual(data["refresh_token"], r1)
        resp = self.client.post("/refresh", json={"refresh_token": r1})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "USER_NOT_FOUND")

    def test_invalid_body_is_422(self) -> None:
        resp = self.client.post("/signup", json={"email": "a@x.com"})
        self.assertEqual(resp.status_code, 422)
        body = resp.json()
        self.assertEqual(set(body), {"message", "status", "code"})
        self.assertEqual(body["code"], "VALIDATION_ERROR")
        self.assertTrue(body["status"].startswith("422 "))
        self.assertIn("password", body["message"])
        resp = self.client.post("/refresh", json={})
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["code"], "VALIDATION_ERROR")

    def test_email_is_stored_as_sent(self) -> None:
        self._signup("alice", "pw123")
        self._login("alice", "pw123")
        self._signup("Bob@Example.COM", "pw123")
        self._login("Bob@Example.COM", "pw123")
        resp = self.client.post("/login", json={"email": "bob@example.com", "password": "pw123"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "USER_NOT_FOUND")

    def test_empty_refresh_token_is_404(self) -> None:
        self._signup()
        self._login()
        resp = self.client.post("/refresh", json={"refresh_token": ""})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "USER_NOT_FOUND")

    def test_unknown_route_uses_error_body(self) -> None:
        resp = self.client.get("/nope")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(
            resp.json(), {"message": "Not Found", "status": "404 Not Found", "code": "NOT_FOUND"}
        )
        resp = self.client.get("/signup")
        self.assertEqual(resp.status_code, 405)
        self.assertEqual(resp.json()["code"], "METHOD_NOT_ALLOWED")
        self.assertEqual(resp.json()["status"], "405 Method Not Allowed")


class TestProtectedEndpoints(ApiTestCase):
    def test_user_route(self) -> None:
        uid = self._signup()
        token = self._login()["token"]
        resp = self.client.get("/user", headers=self._bearer(token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.text, f"Hello User {uid}")

    def test_admin_route_requires_admin(self) -> None:
        self._signup()
        token = self._login()["token"]
        resp = self.client.get("/admin", headers=self._bearer(token))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "INSUFFICIENT_ROLE")

    def test_admin_token_reaches_both_routes(self) -> None:
        uid = self._signup("root@x.com", "pw", role="Admin")
        token = self._login("root@x.com", "pw")["token"]
        resp = self.client.get("/admin", headers=self._bearer(token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.text, f"Hello Admin {uid}")
        self.assertEqual(self.client.get("/user", headers=self._bearer(token)).status_code, 200)

    def test_header_errors_are_401(self) -> None:
        cases = [
            ({}, "AUTH_HEADER_MISSING"),
            ({"Authorization": "Token abc"}, "AUTH_HEADER_MALFORMED"),
            ({"Authorization": "Bearer abc.def.ghi"}, "TOKEN_INVALID"),
        ]
        for headers, code in cases:
            for path in ("/user", "/admin"):
                resp = self.client.get(path, headers=headers)
                self.assertEqual(resp.status_code, 401, (path, headers))
                self.assertEqual(resp.json()["code"], code)
                self.assertEqual(resp.headers.get("www-authenticate"), "Bearer")


class TestServerFailures(ApiTestCase):
    """Store and hashing failures are 500s in the standard error body."""

    def _swap_service(self, service: CredentialService) -> None:
        state = self.client.app.state
        original = state.credential_service
        state.credential_service = service
        self.addCleanup(setattr, state, "credential_service", original)

    def test_store_failure_is_500(self) -> None:
        self._swap_service(
            CredentialService(
                SqlCredentialStore(_unreachable_database),
                self.client.app.state.token_codec,
                BcryptPasswordHasher(rounds=4),
            )
        )
        resp = self.client.post("/signup", json={"email": "a@x.com", "password": "pw123"})
        self.assertEqual(resp.status_code, 500)
        body = resp.json()
        self.assertEqual(set(body), {"message", "status", "code"})
        self.assertEqual(body["status"], "500 Internal Server Error")
        self.assertEqual(body["code"], "STORE_FAILURE")

    def test_hashing_failure_is_500_and_creates_nothing(self) -> None:
        original = self.client.app.state.credential_service
        self._swap_service(
            CredentialService(
                SqlCredentialStore(create_session_factory(self.client.app.state.engine)),
                self.client.app.state.token_codec,
                _FailingHasher(),
            )
        )
        resp = self.client.post("/signup", json={"email": "a@x.com", "password": "pw123"})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["code"], "HASHING_FAILURE")
        self.assertEqual(resp.json()["status"], "500 Internal Server Error")

        self.client.app.state.credential_service = original
        resp = self.client.post("/login", json={"email": "a@x.com", "password": "pw123"})
        self.assertEqual(resp.status_code, 404)
        self._signup()


class TestHealth(ApiTestCase):
    def test_health_reports_database(self) -> None:
        resp = self.client.get("/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(), {"status": "ok", "environment": "dev", "database": "connected"}
        )


class TestStartup(unittest.TestCase):
    """The service refuses to start without a signing key."""

    def test_missing_secret_aborts_startup(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = _settings(
                tmpdir, JWT_SECRET=None, JWT_SECRET_FILE=str(Path(tmpdir) / "missing.txt")
            )
            with self.assertRaises(SecretUnavailableError):
                with TestClient(create_app(settings)):
                    pass

    def test_secret_file_is_used(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            secret_path = Path(tmpdir) / "secret.txt"
            secret_path.write_text(TEST_SECRET + "\n", encoding="utf-8")
            settings = _settings(tmpdir, JWT_SECRET=None, JWT_SECRET_FILE=str(secret_path))
            with TestClient(create_app(settings)) as client:
                self.assertEqual(client.get("/user").status_code, 401)

    def test_api_prefix(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with TestClient(create_app(_settings(tmpdir, API_PREFIX="/api"))) as client:
                resp = client.post("/api/signup", json={"email": "a@x.com", "password": "pw"})
                self.assertEqual(resp.status_code, 200)
                self.assertEqual(client.post("/signup", json={}).status_code, 404)


class TestRunEntrypoint(unittest.TestCase):
    def test_run_serves_app_with_uvicorn(self) -> None:
        with mock.patch("authcore.main.uvicorn.run") as run_server:
            run()
        run_server.assert_called_once()
        args, kwargs = run_server.call_args
        self.assertEqual(args, ("authcore.main:app",))
        self.assertEqual(kwargs["host"], get_settings().HOST)
        self.assertEqual(kwargs["port"], get_settings().PORT)


if __name__ == "__main__":
    unittest.main()
