import asyncio
import unittest
from unittest.mock import patch

import requests
from fastapi.testclient import TestClient

from portfolio_api.app import create_app, lifespan
from portfolio_api.config import Settings
from portfolio_api.db import InMemoryDbClient
from portfolio_api.notifications import (
    DiscordWebhookNotifier,
    InMemoryNotifier,
    NullNotifier,
)
from portfolio_api.records import RecordKind

ADMIN = {"password": "s3cret"}


def make_settings(**overrides) -> Settings:
    values = {"admin_password": "s3cret", "use_in_memory_backends": True}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class PortfolioApiTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.notifier = InMemoryNotifier()
        self.app = create_app(make_settings(), db=self.db, notifier=self.notifier)
        self.client = TestClient(self.app)

    def test_startup_seeds_settings_once(self):
        with TestClient(self.app) as client:
            response = client.get("/api/data")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["settings"]["name"], "Vaibhav Kumar")
        self.assertEqual(self.db.count_site_settings(), 1)

        self.db.upsert_site_settings({"name": "Someone Else"})
        with TestClient(self.app):
            pass
        self.assertEqual(self.db.count_site_settings(), 1)
        self.assertEqual(self.db.get_site_settings()["name"], "Someone Else")

    def test_startup_refuses_unset_admin_password(self):
        app = create_app(make_settings(admin_password=None), db=InMemoryDbClient())

        async def start():
            async with lifespan(app):
                pass

        with self.assertRaises(RuntimeError):
            asyncio.run(start())

    def test_protected_routes_reject_bad_credentials(self):
        self.db.create_record(RecordKind.PROJECT, {"id": 1, "title": "Existing"})
        protected = [
            ("put", "/api/settings", {"bio": "hacked"}),
            ("post", "/api/projects", {"title": "x"}),
            ("put", "/api/projects/1", {"title": "hacked"}),
            ("delete", "/api/projects/1", None),
            ("post", "/api/blogs", {"title": "x", "content": "y"}),
            ("delete", "/api/blogs/1", None),
            ("get", "/api/contact", None),
        ]
        for headers in ({"password": "wrong"}, {"password": ""}, {}):
            for method, path, body in protected:
                kwargs = {"headers": headers}
                if body is not None:
                    kwargs["json"] = body
                response = self.client.request(method.upper(), path, **kwargs)
                self.assertEqual(response.status_code, 401, (method, path, headers))
                self.assertEqual(response.json(), {"message": "Unauthorized"})

        self.assertIsNone(self.db.get_site_settings())
        projects = self.db.list_records(RecordKind.PROJECT)
        self.assertEqual(projects, [{"id": 1, "title": "Existing", "category": "web"}])
        self.assertEqual(self.db.list_records(RecordKind.BLOG), [])

    def test_unset_secret_denies_everything(self):
        app = create_app(make_settings(admin_password=""), db=InMemoryDbClient())
        client = TestClient(app)
        response = client.get("/api/contact", headers={"password": ""})
        self.assertEqual(response.status_code, 401)
        response = client.post("/api/login", json={"password": ""})
        self.assertEqual(response.status_code, 401)

    def test_get_data_shape(self):
        response = self.client.get("/api/data")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"settings": None, "projects": [], "blogs": []}
        )

    def test_add_project_applies_defaults_and_unique_ids(self):
        first = self.client.post(
            "/api/projects", json={"title": "One", "junk": 1}, headers=ADMIN
        )
        second = self.client.post("/api/projects", json={"title": "Two"}, headers=ADMIN)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json()["message"], "Project added")
        project = first.json()["project"]
        self.assertEqual(project["category"], "web")
        self.assertNotIn("junk", project)
        self.assertNotEqual(project["id"], second.json()["project"]["id"])

        data = self.client.get("/api/data").json()
        self.assertEqual([p["title"] for p in data["projects"]], ["One", "Two"])

    def test_update_project_merges_fields(self):
        created = self.client.post(
            "/api/projects",
            json={"title": "Site", "desc": "Old", "link": "https://a.test"},
            headers=ADMIN,
        ).json()["project"]

        response = self.client.put(
            f"/api/projects/{created['id']}", json={"desc": "New"}, headers=ADMIN
        )
        self.assertEqual(response.json(), {"message": "Project updated"})
        project = self.db.list_records(RecordKind.PROJECT)[0]
        self.assertEqual(project["desc"], "New")
        self.assertEqual(project["link"], "https://a.test")

    def test_missing_targets_are_noops(self):
        for method, path, body in (
            ("PUT", "/api/projects/42", {"title": "x"}),
            ("DELETE", "/api/projects/42", None),
            ("DELETE", "/api/blogs/42", None),
        ):
            kwargs = {"headers": ADMIN}
            if body is not None:
                kwargs["json"] = body
            response = self.client.request(method, path, **kwargs)
            self.assertEqual(response.status_code, 200, path)

    def test_delete_project_same_shape_whether_or_not_present(self):
        created = self.client.post(
            "/api/projects", json={"title": "Gone"}, headers=ADMIN
        ).json()["project"]
        existing = self.client.delete(f"/api/projects/{created['id']}", headers=ADMIN)
        missing = self.client.delete(f"/api/projects/{created['id']}", headers=ADMIN)
        self.assertEqual(existing.status_code, missing.status_code)
        self.assertEqual(existing.json(), missing.json())
        self.assertEqual(self.db.list_records(RecordKind.PROJECT), [])

    def test_blogs_listed_newest_first(self):
        for title, date in (
            ("middle", "2024-02-01T00:00:00Z"),
            ("newest", "2024-03-01T00:00:00Z"),
            ("oldest", "2024-01-01T00:00:00Z"),
        ):
            response = self.client.post(
                "/api/blogs",
                json={"title": title, "content": "...", "date": date},
                headers=ADMIN,
            )
            self.assertEqual(response.json()["message"], "Blog posted")

        response = self.client.get("/api/blogs")
        self.assertEqual(
            [b["title"] for b in response.json()], ["newest", "middle", "oldest"]
        )
        data = self.client.get("/api/data").json()
        self.assertEqual(
            [b["title"] for b in data["blogs"]], ["newest", "middle", "oldest"]
        )

    def test_blog_defaults(self):
        blog = self.client.post(
            "/api/blogs", json={"title": "T", "content": "C"}, headers=ADMIN
        ).json()["blog"]
        self.assertEqual(blog["tags"], [])
        self.assertIn("date", blog)
        self.assertIn("id", blog)

    def test_contact_messages_listed_newest_first_for_admin(self):
        for name, date in (
            ("b", "2024-05-02T00:00:00Z"),
            ("a", "2024-05-01T00:00:00Z"),
            ("c", "2024-05-03T00:00:00Z"),
        ):
            self.client.post(
                "/api/contact",
                json={"name": name, "email": "x@y.z", "message": "hi", "date": date},
            )
        response = self.client.get("/api/contact", headers=ADMIN)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([m["name"] for m in response.json()], ["c", "b", "a"])

    def test_contact_dispatches_notification(self):
        response = self.client.post(
            "/api/contact",
            json={"name": "Ada", "email": "ada@example.com", "message": "Hello", "company": "X"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["message"], "Message sent successfully")
        self.assertEqual(body["contact"]["company"], "X")
        self.assertEqual(len(self.notifier.sent), 1)
        fields = self.notifier.sent[0]["embeds"][0]["fields"]
        self.assertEqual([f["value"] for f in fields], ["Ada", "ada@example.com", "Hello"])

    def test_contact_without_webhook_still_succeeds(self):
        app = create_app(make_settings(), db=InMemoryDbClient(), notifier=NullNotifier())
        response = TestClient(app).post(
            "/api/contact", json={"name": "A", "email": "a@b.c", "message": "m"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["contact"]["name"], "A")

    @patch("portfolio_api.notifications.requests.post")
    def test_webhook_failure_does_not_affect_contact(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("receiver down")
        db = InMemoryDbClient()
        notifier = DiscordWebhookNotifier(url="https://hooks.example.test/x")
        app = create_app(make_settings(), db=db, notifier=notifier)

        response = TestClient(app).post(
            "/api/contact", json={"name": "A", "email": "a@b.c", "message": "m"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Message sent successfully")
        self.assertEqual(len(db.list_records(RecordKind.CONTACT)), 1)
        mock_post.assert_called_once()

    def test_settings_partial_update_keeps_other_fields(self):
        self.db.create_site_settings(
            {"name": "Vaibhav Kumar", "bio": "Bio", "email": "a@b.c", "address": "Here"}
        )
        response = self.client.put(
            "/api/settings", json={"phone": "123"}, headers=ADMIN
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["message"], "Settings updated")
        self.assertEqual(
            body["settings"],
            {
                "name": "Vaibhav Kumar",
                "bio": "Bio",
                "email": "a@b.c",
                "address": "Here",
                "phone": "123",
            },
        )

    def test_settings_upsert_creates_when_missing(self):
        response = self.client.put("/api/settings", json={"bio": "New"}, headers=ADMIN)
        self.assertEqual(
            response.json()["settings"], {"name": "Vaibhav Kumar", "bio": "New"}
        )
        self.assertEqual(self.db.count_site_settings(), 1)

    def test_store_faults_use_fixed_messages(self):
        response = self.client.post("/api/projects", json={"desc": "no title"}, headers=ADMIN)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Error adding project"})

        response = self.client.delete("/api/projects/not-a-number", headers=ADMIN)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Error deleting project"})

        response = self.client.post("/api/blogs", json={"title": "t"}, headers=ADMIN)
        self.assertEqual(response.json(), {"message": "Error adding blog"})

    def test_login(self):
        ok = self.client.post("/api/login", json={"password": "s3cret"})
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.json(), {"success": True, "token": "admin-token"})

        bad = self.client.post("/api/login", json={"password": "nope"})
        self.assertEqual(bad.status_code, 401)
        self.assertEqual(bad.json(), {"success": False, "message": "Invalid password"})

    def test_malformed_body_is_bad_request(self):
        response = self.client.post(
            "/api/contact",
            content="{not json",
            headers={"content-type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Invalid request data")

    def test_rate_limit(self):
        app = create_app(make_settings(rate_limit_max=2), db=InMemoryDbClient())
        client = TestClient(app)
        self.assertEqual(client.get("/api/blogs").status_code, 200)
        self.assertEqual(client.get("/api/blogs").status_code, 200)
        limited = client.get("/api/blogs")
        self.assertEqual(limited.status_code, 429)
        self.assertEqual(
            limited.text, "Too many requests from this IP, please try again later."
        )

    def test_body_size_cap(self):
        response = self.client.post(
            "/api/contact", json={"name": "A", "message": "x" * 11 * 1024}
        )
        self.assertEqual(response.status_code, 413)
        self.assertEqual(self.db.list_records(RecordKind.CONTACT), [])

    def test_body_size_cap_counts_chunked_uploads(self):
        def chunks():
            yield b'{"name": "A", "message": "'
            for _ in range(50):
                yield b"x" * 1024
            yield b'"}'

        response = self.client.post(
            "/api/contact",
            content=chunks(),
            headers={"content-type": "application/json"},
        )
        self.assertEqual(response.status_code, 413)
        self.assertEqual(response.json(), {"message": "Request entity too large"})
        self.assertEqual(self.db.list_records(RecordKind.CONTACT), [])

    def test_small_chunked_upload_reaches_handler(self):
        def chunks():
            yield b'{"name": "Ada", '
            yield b'"message": "hi"}'

        response = self.client.post(
            "/api/contact",
            content=chunks(),
            headers={"content-type": "application/json"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["contact"]["name"], "Ada")

    def test_login_rejects_missing_body_and_non_string_password(self):
        for kwargs in ({}, {"json": {"password": 1234}}, {"json": ["s3cret"]}, {"json": {}}):
            response = self.client.post("/api/login", **kwargs)
            self.assertEqual(response.status_code, 401, kwargs)
            self.assertEqual(
                response.json(), {"success": False, "message": "Invalid password"}
            )

    def test_bad_credential_wins_over_malformed_body(self):
        for headers in ({"password": "nope"}, {}):
            response = self.client.put(
                "/api/settings",
                content="{bad",
                headers={**headers, "content-type": "application/json"},
            )
            self.assertEqual(response.status_code, 401)
            self.assertEqual(response.json(), {"message": "Unauthorized"})

        response = self.client.put(
            "/api/settings",
            content="{bad",
            headers={**ADMIN, "content-type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)

    def test_settings_null_name_survives_later_updates(self):
        self.client.put("/api/settings", json={"name": None}, headers=ADMIN)
        response = self.client.put("/api/settings", json={"bio": "Hi"}, headers=ADMIN)
        self.assertEqual(response.json()["settings"], {"name": None, "bio": "Hi"})

    def test_security_and_cors_headers(self):
        app = create_app(
            make_settings(frontend_url="https://me.example.test"), db=InMemoryDbClient()
        )
        client = TestClient(app)
        response = client.get(
            "/api/blogs", headers={"Origin": "https://me.example.test"}
        )
        self.assertEqual(
            response.headers["access-control-allow-origin"], "https://me.example.test"
        )
        self.assertEqual(response.headers["access-control-allow-credentials"], "true")
        self.assertEqual(response.headers["x-content-type-options"], "nosniff")

        response = client.get("/api/blogs", headers={"Origin": "https://evil.test"})
        self.assertNotIn("access-control-allow-origin", response.headers)


if __name__ == "__main__":
    unittest.main()
