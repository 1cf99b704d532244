"""
freemodule/dependencies.py
Accessors for the runtime objects create_app() stores on app.state
"""
from fastapi import Depends, Request

from freemodule.config.settings import Settings
from freemodule.security.passwords import PasswordHasher
from freemodule.security.tokens import TokenService
from freemodule.services.file_store import FileStore
from freemodule.services.note_service import NoteService
from freemodule.services.user_service import UserService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.passwords


def get_file_store(request: Request) -> FileStore:
    return request.app.state.files


def get_note_service(files: FileStore = Depends(get_file_store)) -> NoteService:
    return NoteService(files)


def get_user_service(
    settings: Settings = Depends(get_settings),
    hasher: PasswordHasher = Depends(get_password_hasher),
    files: FileStore = Depends(get_file_store),
) -> UserService:
    return UserService(hasher, files, settings.allowed_email_domain)
