"""
FileStore: type allow-list, size cap, naming, cleanup
"""
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from freemodule.config.settings import ALLOWED_UPLOAD_TYPES
from freemodule.errors import ErrorCode, TooLargeError, UnsupportedTypeError, UploadError
from freemodule.services import file_store
from freemodule.services.file_store import NAME_ATTEMPTS, URL_PREFIX, FileStore, generate_filename


def make_upload(data: bytes, filename: str = "lecture.pdf", content_type: str = "application/pdf") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def store(tmp_path) -> FileStore:
    store = FileStore(str(tmp_path / "uploads"), max_bytes=1024, allowed_types=ALLOWED_UPLOAD_TYPES)
    store.ensure_directory()
    return store


@pytest.mark.parametrize("content_type, extension", [
    ("application/pdf", ".pdf"),
    ("application/msword", ".doc"),
    ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", ".docx"),
    ("application/vnd.ms-powerpoint", ".ppt"),
    ("application/vnd.openxmlformats-officedocument.presentationml.presentation", ".pptx"),
])
def test_extension_follows_content_type(content_type, extension):
    assert generate_filename(content_type).endswith(extension)


def test_generated_names_are_unique():
    names = {generate_filename("application/pdf") for _ in range(50)}
    assert len(names) == 50


async def test_store_writes_file(store):
    stored = await store.store(make_upload(b"%PDF-1.4 hello"))
    assert stored.url == f"{URL_PREFIX}/{stored.filename}"
    assert stored.path.read_bytes() == b"%PDF-1.4 hello"
    assert stored.size == len(b"%PDF-1.4 hello")
    assert stored.path.exists()


async def test_content_type_parameters_are_ignored(store):
    upload = make_upload(b"doc", "essay.docx",
                         "application/vnd.openxmlformats-officedocument.wordprocessingml.document; charset=binary")
    stored = await store.store(upload)
    assert stored.filename.endswith(".docx")


async def test_unsupported_type_writes_nothing(store):
    with pytest.raises(UnsupportedTypeError) as exc_info:
        await store.store(make_upload(b"MZ...", "setup.exe", "application/x-msdownload"))
    assert exc_info.value.code == ErrorCode.UNSUPPORTED_TYPE
    assert list(store.root.iterdir()) == []


async def test_oversize_upload_leaves_no_partial_file(store):
    with pytest.raises(TooLargeError) as exc_info:
        await store.store(make_upload(b"x" * 4096))
    assert exc_info.value.status_code == 400
    assert list(store.root.iterdir()) == []


async def test_empty_upload_rejected(store):
    with pytest.raises(UploadError):
        await store.store(make_upload(b""))
    assert list(store.root.iterdir()) == []


async def test_delete_removes_file(store):
    stored = await store.store(make_upload(b"content"))
    assert await store.delete(stored.url) is True
    assert not stored.path.exists()


async def test_delete_missing_file_is_not_an_error(store):
    assert await store.delete(f"{URL_PREFIX}/does-not-exist.pdf") is False
    assert await store.delete(None) is False


async def test_delete_cannot_escape_upload_dir(store, tmp_path):
    outside = tmp_path / "keep.txt"
    outside.write_text("keep me")
    await store.delete("/uploads/../keep.txt")
    assert outside.exists()


@pytest.mark.parametrize("filename", ["evil.html", "page.HTM", "icon.svg", "run.js", "no-extension"])
async def test_client_filename_never_sets_extension(store, filename):
    stored = await store.store(make_upload(b"%PDF-1.4", filename, "application/pdf"))
    assert stored.filename.endswith(".pdf")
    assert [p.name for p in store.root.iterdir()] == [stored.filename]


async def test_name_collision_draws_a_new_name(store, monkeypatch):
    taken = store.root / "taken.pdf"
    taken.write_bytes(b"original")
    names = iter(["taken.pdf", "fresh.pdf"])
    monkeypatch.setattr(file_store, "generate_filename", lambda content_type: next(names))

    stored = await store.store(make_upload(b"%PDF-1.4 new"))

    assert stored.filename == "fresh.pdf"
    assert stored.path.read_bytes() == b"%PDF-1.4 new"
    assert taken.read_bytes() == b"original"


async def test_no_free_name_fails_without_overwriting(store, monkeypatch):
    taken = store.root / "taken.pdf"
    taken.write_bytes(b"original")
    calls = []

    def always_taken(content_type):
        calls.append(content_type)
        return "taken.pdf"

    monkeypatch.setattr(file_store, "generate_filename", always_taken)

    with pytest.raises(UploadError):
        await store.store(make_upload(b"%PDF-1.4 new"))
    assert len(calls) == NAME_ATTEMPTS
    assert taken.read_bytes() == b"original"
    assert [p.name for p in store.root.iterdir()] == ["taken.pdf"]
