"""
Note lifecycle: every note row has exactly one file on disk, and a failed
request never leaves a file behind.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.exc import SQLAlchemyError

from conftest import PDF_BYTES, stored_files, upload_note
from freemodule.errors import ErrorCode
from freemodule.orm import Comment, Note, QAPost
from freemodule.services import note_service


class TestUpload:
    async def test_upload_creates_note_and_file(self, client: AsyncClient, upload_dir, alice):
        response = await upload_note(client, alice, title="Week 1", description="Intro")
        assert response.status_code == 201
        note = response.json()
        assert note["user_id"] == alice["id"]
        assert note["title"] == "Week 1"
        assert note["uploader_name"] == "Alice Reyes"
        assert note["likes"] == 0
        assert note["comments_count"] == 0
        assert note["file_url"].startswith("/uploads/")
        assert note["file_url"].endswith(".pdf")
        assert stored_files(upload_dir) == [note["file_url"].rsplit("/", 1)[1]]

    async def test_uploaded_file_is_served(self, client: AsyncClient, note):
        response = await client.get(note["file_url"])
        assert response.status_code == 200
        assert response.content == PDF_BYTES

    async def test_html_filename_is_stored_as_declared_type(self, client: AsyncClient, upload_dir, alice):
        response = await upload_note(client, alice, filename="evil.html", content_type="application/pdf")
        assert response.status_code == 201
        file_url = response.json()["file_url"]
        assert file_url.endswith(".pdf")
        assert stored_files(upload_dir) == [file_url.rsplit("/", 1)[1]]

        served = await client.get(file_url)
        assert served.status_code == 200
        assert served.headers["content-type"].startswith("application/pdf")

    async def test_upload_requires_token(self, client: AsyncClient, upload_dir):
        response = await client.post(
            "/notes/upload",
            data={"title": "Anon"},
            files={"file": ("a.pdf", PDF_BYTES, "application/pdf")},
        )
        assert response.status_code == 401
        assert stored_files(upload_dir) == []

    async def test_upload_requires_file(self, client: AsyncClient, alice):
        response = await client.post("/notes/upload", data={"title": "No file"}, headers=alice["headers"])
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "File is required"

    async def test_file_over_limit_rejected(self, client: AsyncClient, upload_dir, alice):
        response = await upload_note(client, alice, content=b"0" * (6 * 1024 * 1024))
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == ErrorCode.TOO_LARGE
        assert error["message"] == "File exceeds 5MB limit"
        assert stored_files(upload_dir) == []

    async def test_unsupported_type_rejected(self, client: AsyncClient, upload_dir, alice):
        response = await upload_note(client, alice, filename="photo.png", content_type="image/png")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.UNSUPPORTED_TYPE
        assert stored_files(upload_dir) == []

    async def test_markup_only_title_leaves_no_file(self, client: AsyncClient, upload_dir, alice):
        response = await upload_note(client, alice, title="<script>alert(1)</script>")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.VALIDATION
        assert stored_files(upload_dir) == []

    async def test_unknown_subject_leaves_no_file(self, client: AsyncClient, upload_dir, alice):
        response = await upload_note(client, alice, subject_id=999)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.FOREIGN_KEY
        assert stored_files(upload_dir) == []

    async def test_non_numeric_subject_leaves_no_file(self, client: AsyncClient, upload_dir, alice):
        response = await client.post(
            "/notes/upload",
            data={"title": "Week 1", "subject_id": "abc"},
            files={"file": ("a.pdf", PDF_BYTES, "application/pdf")},
            headers=alice["headers"],
        )
        assert response.status_code == 400
        assert stored_files(upload_dir) == []

    async def test_database_failure_leaves_no_file(self, client: AsyncClient, upload_dir, alice, monkeypatch):
        def broken_insert(*args, **kwargs):
            raise SQLAlchemyError("simulated outage")

        monkeypatch.setattr(note_service, "insert", broken_insert)
        response = await upload_note(client, alice)
        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == ErrorCode.SERVER_ERROR
        assert "simulated" not in error["message"]
        assert error["details"][0]["log_id"]
        assert stored_files(upload_dir) == []

    async def test_title_and_description_are_sanitized(self, client: AsyncClient, alice):
        response = await upload_note(
            client, alice,
            title="<b>Calculus</b> review",
            description='<img src=x onerror="alert(1)">Limits',
        )
        assert response.status_code == 201
        assert response.json()["title"] == "Calculus review"
        assert response.json()["description"] == "Limits"

    async def test_upload_with_subject(self, client: AsyncClient, alice):
        course = (await client.post("/courses", json={"course_code": "BSIT", "course_name": "Information Technology"},
                                    headers=alice["headers"])).json()
        subject = (await client.post("/subjects", json={"course_id": course["id"], "subject_name": "Networking"},
                                     headers=alice["headers"])).json()
        response = await upload_note(client, alice, subject_id=subject["id"])
        assert response.status_code == 201
        assert response.json()["subject_id"] == subject["id"]


class TestRead:
    async def test_get_note(self, client: AsyncClient, note):
        response = await client.get(f"/notes/{note['id']}")
        assert response.status_code == 200
        assert response.json() == note

    async def test_get_missing_note(self, client: AsyncClient):
        response = await client.get("/notes/4242")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == ErrorCode.NOT_FOUND

    async def test_list_is_newest_first(self, client: AsyncClient, alice):
        for title in ("first", "second", "third"):
            await upload_note(client, alice, title=title)
        response = await client.get("/notes")
        assert response.status_code == 200
        titles = [item["title"] for item in response.json()["items"]]
        assert titles == ["third", "second", "first"]

    async def test_list_pagination(self, client: AsyncClient, alice):
        for i in range(3):
            await upload_note(client, alice, title=f"note {i}")
        response = await client.get("/notes", params={"limit": 2, "offset": 2})
        body = response.json()
        assert body["limit"] == 2
        assert body["offset"] == 2
        assert [item["title"] for item in body["items"]] == ["note 0"]

    async def test_oversize_limit_is_clamped(self, client: AsyncClient, note):
        response = await client.get("/notes", params={"limit": 10000})
        assert response.status_code == 200
        assert response.json()["limit"] == 100

    @pytest.mark.parametrize("params", [{"limit": 0}, {"offset": -1}, {"limit": "many"}])
    async def test_bad_pagination(self, client: AsyncClient, params):
        response = await client.get("/notes", params=params)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.VALIDATION

    async def test_filter_by_user(self, client: AsyncClient, alice, bob):
        await upload_note(client, alice, title="from alice")
        await upload_note(client, bob, title="from bob")
        response = await client.get("/notes", params={"user_id": bob["id"]})
        assert [item["title"] for item in response.json()["items"]] == ["from bob"]

    async def test_counts_follow_likes_and_comments(self, client: AsyncClient, note, bob):
        await client.post(f"/notes/{note['id']}/rate", headers=bob["headers"])
        await client.post(f"/notes/{note['id']}/comments", json={"comment_text": "nice"}, headers=bob["headers"])
        body = (await client.get(f"/notes/{note['id']}")).json()
        assert body["likes"] == 1
        assert body["comments_count"] == 1


class TestUpdate:
    async def test_owner_updates_fields(self, client: AsyncClient, note, alice):
        response = await client.put(
            f"/notes/{note['id']}", data={"title": "Renamed"}, headers=alice["headers"],
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"
        assert response.json()["file_url"] == note["file_url"]

    async def test_owner_replaces_file(self, client: AsyncClient, upload_dir, note, alice):
        old_name = note["file_url"].rsplit("/", 1)[1]
        response = await client.put(
            f"/notes/{note['id']}",
            files={"file": ("week1-v2.pdf", b"%PDF-1.4 revised", "application/pdf")},
            headers=alice["headers"],
        )
        assert response.status_code == 200
        new_url = response.json()["file_url"]
        assert new_url != note["file_url"]
        assert stored_files(upload_dir) == [new_url.rsplit("/", 1)[1]]
        assert old_name not in stored_files(upload_dir)
        assert (await client.get(new_url)).content == b"%PDF-1.4 revised"

    async def test_non_owner_update_is_not_found(self, client: AsyncClient, upload_dir, note, bob):
        before = stored_files(upload_dir)
        response = await client.put(
            f"/notes/{note['id']}",
            data={"title": "Hijacked"},
            files={"file": ("evil.pdf", b"%PDF-1.4 evil", "application/pdf")},
            headers=bob["headers"],
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == ErrorCode.NOT_FOUND
        assert stored_files(upload_dir) == before
        current = (await client.get(f"/notes/{note['id']}")).json()
        assert current["title"] == note["title"]
        assert (await client.get(note["file_url"])).content == PDF_BYTES

    async def test_update_without_fields(self, client: AsyncClient, note, alice):
        response = await client.put(f"/notes/{note['id']}", data={}, headers=alice["headers"])
        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.NO_FIELDS

    async def test_rejected_replacement_keeps_original(self, client: AsyncClient, upload_dir, note, alice):
        before = stored_files(upload_dir)
        response = await client.put(
            f"/notes/{note['id']}",
            data={"title": "<script></script>"},
            files={"file": ("v2.pdf", b"%PDF-1.4 v2", "application/pdf")},
            headers=alice["headers"],
        )
        assert response.status_code == 400
        assert stored_files(upload_dir) == before


class TestDelete:
    async def test_owner_deletes_note_and_file(self, client: AsyncClient, upload_dir, note, alice):
        response = await client.delete(f"/notes/{note['id']}", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json()["message"] == "Note deleted successfully"
        assert stored_files(upload_dir) == []
        assert (await client.get(f"/notes/{note['id']}")).status_code == 404
        assert (await client.get(note["file_url"])).status_code == 404

    async def test_non_owner_delete_is_not_found(self, client: AsyncClient, upload_dir, note, bob):
        response = await client.delete(f"/notes/{note['id']}", headers=bob["headers"])
        assert response.status_code == 404
        assert len(stored_files(upload_dir)) == 1

    async def test_delete_succeeds_when_file_already_gone(self, client: AsyncClient, upload_dir, note, alice):
        for path in upload_dir.iterdir():
            path.unlink()
        response = await client.delete(f"/notes/{note['id']}", headers=alice["headers"])
        assert response.status_code == 200

    async def test_delete_cascades_comments_and_likes(self, client: AsyncClient, note, alice, bob):
        await client.post(f"/notes/{note['id']}/rate", headers=bob["headers"])
        await client.post(f"/notes/{note['id']}/comments", json={"comment_text": "hi"}, headers=bob["headers"])
        await client.delete(f"/notes/{note['id']}", headers=alice["headers"])
        assert (await client.get(f"/notes/{note['id']}/comments")).status_code == 404
        assert (await client.get(f"/notes/{note['id']}/ratings")).status_code == 404


class TestStoredMarkup:
    """Rows written behind the API's back are still stripped on the way out."""

    async def test_markup_in_rows_is_stripped_on_read(self, app, client: AsyncClient, alice):
        async with app.state.db.session() as session:
            note = Note(
                user_id=alice["id"],
                title="<script>alert(1)</script>Week 1",
                description='<img src=x onerror="alert(2)">Arrays and n<m bounds',
                file_url="/uploads/legacy.pdf",
            )
            session.add(note)
            await session.flush()
            comment = Comment(note_id=note.id, user_id=alice["id"], comment_text="<script>steal()</script>Nice notes")
            question = QAPost(user_id=alice["id"], question="<b>Where</b> is room 204?<script>x()</script>")
            session.add_all([comment, question])
            await session.flush()
            note_id, question_id = note.id, question.id
            await session.commit()

        fetched = await client.get(f"/notes/{note_id}")
        assert fetched.status_code == 200
        assert fetched.json()["title"] == "Week 1"
        assert fetched.json()["description"] == "Arrays and n<m bounds"
        assert "<script" not in fetched.text

        comments = await client.get(f"/notes/{note_id}/comments")
        assert comments.status_code == 200
        assert [c["comment_text"] for c in comments.json()["items"]] == ["Nice notes"]
        assert "<script" not in comments.text

        thread = await client.get(f"/qa/{question_id}")
        assert thread.status_code == 200
        assert thread.json()["question"] == "Where is room 204?"
        assert "<script" not in thread.text
