"""ASGI entrypoint for the campus attendance API."""

from campus_attendance.api.app import create_app
from campus_attendance.containers import build_container

app = create_app(build_container())
