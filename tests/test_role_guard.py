"""Tests for the role guard on the admin, doctor and front desk areas."""
from __future__ import annotations

from datetime import timedelta
from http import HTTPStatus
import unittest
from urllib.parse import parse_qs, urlsplit

from flask_jwt_extended import create_access_token

from clinic_portal.app import create_app
from clinic_portal.app.routes import RouteEntry, RouteGroup, RouteTable


class RoleGuardTestCase(unittest.TestCase):
    """Protected prefixes need a token whose role matches the group."""

    def setUp(self) -> None:  # noqa: D401 - inherited documentation
        """Configure an application with the guard switched on."""

        self.app = create_app("testing")
        self.app.config.update(ROLE_GUARD_ENABLED=True)
        self.client = self.app.test_client()

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _token(self, role: str | None, **kwargs) -> str:
        claims = {"role": role} if role is not None else {}
        with self.app.app_context():
            return create_access_token(identity="1", additional_claims=claims, **kwargs)

    def _get(self, path: str, token: str | None = None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return self.client.get(path, headers=headers)

    # ------------------------------------------------------------------
    # Tests
    # ------------------------------------------------------------------
    def test_anonymous_request_is_sent_to_login(self) -> None:
        with self.assertLogs("clinic_portal.app.middleware", level="WARNING") as logs:
            response = self._get("/admin/dashboard")

        self.assertEqual(response.status_code, HTTPStatus.FOUND)
        location = urlsplit(response.headers["Location"])
        self.assertEqual(location.path, "/login")
        self.assertEqual(parse_qs(location.query), {"next": ["/admin/dashboard"]})
        self.assertTrue(any("Rejected GET /admin/dashboard" in line for line in logs.output))

    def test_matching_role_is_allowed(self) -> None:
        cases = {
            "admin": "/admin/patients",
            "doctor": "/doctor/appointments/42",
            "frontdesk": "/frontdesk/history",
        }
        for role, path in cases.items():
            with self.subTest(role=role):
                response = self._get(path, self._token(role))
                self.assertEqual(response.status_code, HTTPStatus.OK)

    def test_role_claim_must_match_exactly(self) -> None:
        response = self._get("/doctor/calendar", self._token("Doctor"))

        self.assertEqual(response.status_code, HTTPStatus.FOUND)
        self.assertEqual(urlsplit(response.headers["Location"]).path, "/login")

    def test_other_roles_are_rejected(self) -> None:
        response = self._get("/admin/dashboard", self._token("doctor"))

        self.assertEqual(response.status_code, HTTPStatus.FOUND)
        self.assertTrue(response.headers["Location"].startswith("/login"))

    def test_token_without_role_is_rejected(self) -> None:
        response = self._get("/frontdesk/dashboard", self._token(None))

        self.assertEqual(response.status_code, HTTPStatus.FOUND)

    def test_malformed_token_is_rejected(self) -> None:
        response = self._get("/doctor/dashboard", "not-a-jwt")

        self.assertEqual(response.status_code, HTTPStatus.FOUND)

    def test_expired_token_is_rejected(self) -> None:
        token = self._token("admin", expires_delta=timedelta(seconds=-1))

        response = self._get("/admin/dashboard", token)

        self.assertEqual(response.status_code, HTTPStatus.FOUND)

    def test_token_is_read_from_cookie(self) -> None:
        self.client.set_cookie("access_token_cookie", self._token("admin"))

        response = self.client.get("/admin/calendar")

        self.assertEqual(response.status_code, HTTPStatus.OK)

    def test_public_routes_need_no_token(self) -> None:
        for path in ("/login", "/booking/step-1", "/booking/step-4"):
            with self.subTest(path=path):
                self.assertEqual(self._get(path).status_code, HTTPStatus.OK)
        self.assertEqual(self._get("/").status_code, HTTPStatus.FOUND)

    def test_unknown_protected_path_is_still_not_found(self) -> None:
        response = self._get("/admin/settings")

        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

    def test_guard_can_be_disabled(self) -> None:
        self.app.config.update(ROLE_GUARD_ENABLED=False)

        response = self._get("/admin/dashboard")

        self.assertEqual(response.status_code, HTTPStatus.OK)


class RoleGuardWithoutLoginTestCase(unittest.TestCase):
    """Rejections fall back to 401 when the table has no sign-in route."""

    def setUp(self) -> None:  # noqa: D401 - inherited documentation
        """Serve a table that only declares an admin page."""

        table = RouteTable(
            [
                RouteEntry(
                    path="/dashboard",
                    name="admin.dashboard",
                    view="admin.dashboard",
                    group=RouteGroup.ADMIN,
                ),
            ]
        )
        self.app = create_app("testing", route_table=table)
        self.app.config.update(ROLE_GUARD_ENABLED=True)
        self.client = self.app.test_client()

    def test_anonymous_request_is_unauthorized(self) -> None:
        response = self.client.get("/admin/dashboard")

        self.assertEqual(response.status_code, HTTPStatus.UNAUTHORIZED)

    def test_matching_role_still_renders(self) -> None:
        with self.app.app_context():
            token = create_access_token(identity="1", additional_claims={"role": "admin"})

        response = self.client.get("/admin/dashboard", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertNotIn('href="/login"', response.get_data(as_text=True))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
