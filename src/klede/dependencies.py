"""Shared FastAPI dependencies.

Services are built once in the app lifespan and stored on ``app.state``;
these helpers hand them to route handlers.
"""

from fastapi import Request

from klede.config import Settings
from klede.email.service import EmailService
from klede.gamification.service import WaitlistService
from klede.waitlist.store import EntryStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> EntryStore:
    return request.app.state.store


def get_waitlist_service(request: Request) -> WaitlistService:
    return request.app.state.waitlist_service


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service
