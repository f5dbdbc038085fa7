"""
OneSim Backend: Request Dependencies
====================================

What:  FastAPI providers for the process-scoped services.
How:   Everything is built once in the lifespan and stored on `app.state`;
       these functions hand it to route handlers via Depends(). Tests swap
       any of them with `app.dependency_overrides`.
"""

from fastapi import Request
from starlette.requests import HTTPConnection

from onesim.config import Settings
from onesim.services.broadcaster import NotificationBroadcaster
from onesim.services.file_relay import FileRelay
from onesim.services.password_hasher import PasswordHasher


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_broadcaster(connection: HTTPConnection) -> NotificationBroadcaster:
    # HTTPConnection so the WebSocket endpoint can use it too
    return connection.app.state.broadcaster


def get_file_relay(request: Request) -> FileRelay:
    return request.app.state.file_relay


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher
