import unittest

from database import db
from errors import NotFound, ValidationError
from models.project import Project
from models.task import Task
from services.project_service import ProjectService
from services.task_service import TaskService
from tests.utils.base import AppTestCase
from tests.utils.fakes import RecordingPublisher


class ProjectServiceTestCase(AppTestCase):
    def setUp(self):
        super().setUp()
        self.publisher = RecordingPublisher()

    def _projects(self):
        return ProjectService(db.session, self.publisher)

    def _tasks(self):
        return TaskService(db.session, self.publisher)

    def test_owner_defaults_to_actor(self):
        with self.app.app_context():
            project = self._projects().create_project(self.member(), "Mobile App", "Native client")
            self.assertEqual(project.owner_id, self.member_id)
            self.assertEqual(project.description, "Native client")
        payload = self.publisher.of("projectCreated")[0]
        self.assertEqual(payload["owner"], {"id": self.member_id, "name": "Team Member", "username": "member"})

    def test_explicit_owner_must_exist(self):
        with self.app.app_context():
            project = self._projects().create_project(self.owner(), "Delegated", owner_id=self.member_id)
            self.assertEqual(project.owner_id, self.member_id)
            with self.assertRaises(NotFound) as ctx:
                self._projects().create_project(self.owner(), "Nobody's", owner_id=9999)
            self.assertEqual(ctx.exception.message, "Owner not found")

    def test_name_is_required(self):
        with self.app.app_context():
            with self.assertRaises(ValidationError) as ctx:
                self._projects().create_project(self.owner(), "   ")
            self.assertEqual(ctx.exception.message, "Name is required")

    def test_update_keeps_owner(self):
        with self.app.app_context():
            service = self._projects()
            project = service.create_project(self.owner(), "Website Redesign")
            updated = service.update_project(self.owner(), project.id, {"description": "Q3 refresh"})
            self.assertEqual(updated.name, "Website Redesign")
            self.assertEqual(updated.description, "Q3 refresh")

            with self.assertRaises(ValidationError) as ctx:
                service.update_project(self.owner(), project.id, {"owner_id": self.member_id})
            self.assertEqual(ctx.exception.message, "ownerId cannot be changed")
            self.assertEqual(db.session.get(Project, project.id).owner_id, self.owner_id)

        self.assertEqual(len(self.publisher.of("projectUpdated")), 1)

    def test_delete_cascades_to_tasks(self):
        with self.app.app_context():
            project = self._projects().create_project(self.owner(), "Website Redesign")
            keep = self._projects().create_project(self.owner(), "Backend API")
            project_id = project.id
            task_ids = [
                self._tasks().create_task(self.owner(), title, project_id).id
                for title in ("Design mockups", "Build pages", "Launch")
            ]
            survivor = self._tasks().create_task(self.owner(), "Document endpoints", keep.id).id

            self._projects().delete_project(self.owner(), project_id)

            self.assertIsNone(db.session.get(Project, project_id))
            self.assertEqual(Task.query.filter_by(project_id=project_id).count(), 0)
            self.assertIsNotNone(db.session.get(Task, survivor))

        self.assertEqual(sorted(payload["id"] for payload in self.publisher.of("taskDeleted")), sorted(task_ids))
        self.assertEqual(self.publisher.of("projectDeleted"), [{"id": project_id}])
        self.assertEqual(self.publisher.names()[-1], "projectDeleted")

    def test_list_filters_by_owner_newest_first(self):
        with self.app.app_context():
            service = self._projects()
            first = service.create_project(self.owner(), "First")
            second = service.create_project(self.member(), "Second")
            third = service.create_project(self.owner(), "Third")

            self.assertEqual([p.id for p in service.list_projects()], [third.id, second.id, first.id])
            self.assertEqual([p.id for p in service.list_projects(owner_id=self.owner_id)], [third.id, first.id])
            self.assertEqual(service.list_projects(owner_id=9999), [])


class ProjectRoutesTestCase(AppTestCase):
    def _create(self, **payload):
        payload.setdefault("name", "Website Redesign")
        return self.client.post("/api/projects", headers=self.auth_headers(), json=payload)

    def test_create_and_detail(self):
        response = self._create(description="New look")
        self.assertEqual(response.status_code, 201)
        project = response.get_json()["data"]
        self.assertEqual(project["ownerId"], self.owner_id)

        self.client.post(
            "/api/tasks",
            headers=self.auth_headers(),
            json={"title": "Design mockups", "projectId": project["id"]},
        )

        response = self.client.get(f"/api/projects/{project['id']}", headers=self.auth_headers())
        self.assertEqual(response.status_code, 200)
        detail = response.get_json()["data"]
        self.assertEqual(detail["owner"]["username"], "owner")
        self.assertEqual(len(detail["tasks"]), 1)
        self.assertEqual(detail["tasks"][0]["title"], "Design mockups")

        response = self.client.get("/api/projects", headers=self.auth_headers())
        listed = response.get_json()["data"][0]
        self.assertEqual(listed["tasks"], [{"id": detail["tasks"][0]["id"], "status": "todo"}])

    def test_owner_id_cannot_change(self):
        project_id = self._create().get_json()["data"]["id"]
        response = self.client.put(
            f"/api/projects/{project_id}",
            headers=self.auth_headers(),
            json={"name": "Renamed", "ownerId": self.member_id},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "ownerId cannot be changed")

        response = self.client.put(f"/api/projects/{project_id}", headers=self.auth_headers(), json={"name": "Renamed"})
        self.assertEqual(response.get_json()["data"]["name"], "Renamed")

    def test_delete_leaves_no_orphans(self):
        project_id = self._create().get_json()["data"]["id"]
        for title in ("One", "Two"):
            self.client.post("/api/tasks", headers=self.auth_headers(), json={"title": title, "projectId": project_id})

        response = self.client.delete(f"/api/projects/{project_id}", headers=self.auth_headers())
        self.assertEqual(response.status_code, 200)

        response = self.client.get(f"/api/tasks?projectId={project_id}", headers=self.auth_headers())
        self.assertEqual(response.get_json()["data"], [])
        response = self.client.get(f"/api/projects/{project_id}", headers=self.auth_headers())
        self.assertEqual(response.status_code, 404)

    def test_list_by_owner(self):
        self._create(name="Mine")
        self.client.post("/api/projects", headers=self.auth_headers(self.member_token), json={"name": "Theirs"})

        response = self.client.get(f"/api/projects?ownerId={self.member_id}", headers=self.auth_headers())
        self.assertEqual([p["name"] for p in response.get_json()["data"]], ["Theirs"])

    def test_wrongly_typed_values_are_rejected(self):
        response = self._create(name=5)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "ValidationError")

        response = self._create(ownerId=1.5)
        self.assertEqual(response.status_code, 400)

        project_id = self._create().get_json()["data"]["id"]
        response = self.client.put(f"/api/projects/{project_id}", headers=self.auth_headers(), json={"ownerId": True})
        self.assertEqual(response.status_code, 400)
        response = self.client.get(f"/api/projects/{project_id}", headers=self.auth_headers())
        self.assertEqual(response.get_json()["data"]["ownerId"], self.owner_id)


if __name__ == "__main__":
    unittest.main()
