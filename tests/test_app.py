import unittest

from errors import InternalError
from tests.utils.base import AppTestCase


class AppEndpointsTestCase(AppTestCase):
    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["status"], "OK")
        self.assertEqual(data["environment"], "test")
        self.assertGreaterEqual(data["uptime"], 0)

    def test_api_info(self):
        response = self.client.get("/api")
        body = response.get_json()
        self.assertEqual(body["message"], "Welcome to TableCraft API")
        self.assertEqual(body["data"]["endpoints"]["tasks"], "/api/tasks")

    def test_unknown_route_is_shaped(self):
        response = self.client.get("/api/nothing-here")
        self.assertEqual(response.status_code, 404)
        body = response.get_json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Not Found")

    def test_cors_header(self):
        response = self.client.get("/health")
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")

    def test_non_object_body_is_rejected(self):
        response = self.client.post("/api/projects", headers=self.auth_headers(), json=["not", "an", "object"])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "Request body must be a JSON object")

    def test_unexpected_errors_do_not_leak_details(self):
        @self.app.route("/boom")
        def boom():
            raise RuntimeError("database password is hunter2")

        with self.assertLogs(level="ERROR"):
            response = self.client.get("/boom")
        self.assertEqual(response.status_code, 500)
        body = response.get_json()
        self.assertEqual(body, {"success": False, "message": "Internal server error", "error": "InternalError"})

    def test_internal_error_message_is_replaced(self):
        @self.app.route("/internal")
        def internal():
            raise InternalError("Failed to fetch tasks: sqlite3.OperationalError")

        with self.assertLogs(level="ERROR"):
            response = self.client.get("/internal")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()["message"], "Internal server error")


if __name__ == "__main__":
    unittest.main()
