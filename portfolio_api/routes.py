"""
HTTP routes for the portfolio API.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, status

from portfolio_api.auth import AdminRoute, password_matches
from portfolio_api.config import Settings
from portfolio_api.db import DbClient, StoreError
from portfolio_api.dependencies import get_app_settings, get_db_client, get_notifier
from portfolio_api.errors import ApiError
from portfolio_api.notifications import Notifier
from portfolio_api.records import RecordKind
from portfolio_api.schemas import (
    BlogCreateResponse,
    ContactCreateResponse,
    LoginResponse,
    MessageResponse,
    PortfolioDataResponse,
    ProjectCreateResponse,
    SettingsUpdateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()
# Checked before the body is parsed; see AdminRoute.
admin_router = APIRouter(route_class=AdminRoute)


def _store_fault(message: str) -> ApiError:
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


@router.get("/data", response_model=PortfolioDataResponse)
def get_portfolio_data(db: DbClient = Depends(get_db_client)):
    """
    Everything the public site renders on load.
    """
    try:
        settings = db.get_site_settings()
        projects = db.list_records(RecordKind.PROJECT)
        blogs = db.list_records(RecordKind.BLOG)
    except StoreError:
        logger.exception("Failed to load portfolio data")
        raise _store_fault("Server Error")
    return PortfolioDataResponse(settings=settings, projects=projects, blogs=blogs)


@admin_router.put("/settings", response_model=SettingsUpdateResponse)
def update_site_settings(
    payload: dict[str, Any] = Body(...), db: DbClient = Depends(get_db_client)
):
    try:
        settings = db.upsert_site_settings(payload)
    except StoreError:
        logger.exception("Failed to update settings")
        raise _store_fault("Error updating settings")
    return SettingsUpdateResponse(message="Settings updated", settings=settings)


@admin_router.post("/projects", response_model=ProjectCreateResponse)
def add_project(
    payload: dict[str, Any] = Body(...), db: DbClient = Depends(get_db_client)
):
    try:
        project = db.create_record(RecordKind.PROJECT, payload)
    except StoreError:
        logger.exception("Failed to add project")
        raise _store_fault("Error adding project")
    return ProjectCreateResponse(message="Project added", project=project)


@admin_router.put("/projects/{project_id}", response_model=MessageResponse)
def update_project(
    project_id: str,
    payload: dict[str, Any] = Body(...),
    db: DbClient = Depends(get_db_client),
):
    try:
        found = db.update_record(RecordKind.PROJECT, project_id, payload)
    except StoreError:
        logger.exception("Failed to update project %s", project_id)
        raise _store_fault("Error updating project")
    if not found:
        logger.info("Project %s not found, nothing updated", project_id)
    return MessageResponse(message="Project updated")


@admin_router.delete("/projects/{project_id}", response_model=MessageResponse)
def delete_project(project_id: str, db: DbClient = Depends(get_db_client)):
    try:
        found = db.delete_record(RecordKind.PROJECT, project_id)
    except StoreError:
        logger.exception("Failed to delete project %s", project_id)
        raise _store_fault("Error deleting project")
    if not found:
        logger.info("Project %s not found, nothing deleted", project_id)
    return MessageResponse(message="Project deleted")


@router.get("/blogs", response_model=list[dict])
def list_blogs(db: DbClient = Depends(get_db_client)):
    try:
        return db.list_records(RecordKind.BLOG)
    except StoreError:
        logger.exception("Failed to fetch blogs")
        raise _store_fault("Error fetching blogs")


@admin_router.post("/blogs", response_model=BlogCreateResponse)
def add_blog(payload: dict[str, Any] = Body(...), db: DbClient = Depends(get_db_client)):
    try:
        blog = db.create_record(RecordKind.BLOG, payload)
    except StoreError:
        logger.exception("Failed to add blog")
        raise _store_fault("Error adding blog")
    return BlogCreateResponse(message="Blog posted", blog=blog)


@admin_router.delete("/blogs/{blog_id}", response_model=MessageResponse)
def delete_blog(blog_id: str, db: DbClient = Depends(get_db_client)):
    try:
        found = db.delete_record(RecordKind.BLOG, blog_id)
    except StoreError:
        logger.exception("Failed to delete blog %s", blog_id)
        raise _store_fault("Error deleting blog")
    if not found:
        logger.info("Blog %s not found, nothing deleted", blog_id)
    return MessageResponse(message="Blog deleted")


@router.post("/contact", response_model=ContactCreateResponse)
def submit_contact(
    background_tasks: BackgroundTasks,
    payload: dict[str, Any] = Body(...),
    db: DbClient = Depends(get_db_client),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Public contact form. The webhook runs after the response has been sent.
    """
    try:
        contact = db.create_record(RecordKind.CONTACT, payload)
    except StoreError:
        logger.exception("Failed to store contact message")
        raise _store_fault("Error sending message")
    background_tasks.add_task(notifier.notify_contact, contact)
    return ContactCreateResponse(message="Message sent successfully", contact=contact)


@admin_router.get("/contact", response_model=list[dict])
def list_contact_messages(db: DbClient = Depends(get_db_client)):
    try:
        return db.list_records(RecordKind.CONTACT)
    except StoreError:
        logger.exception("Failed to fetch contact messages")
        raise _store_fault("Error fetching messages")


@router.post("/login", response_model=LoginResponse)
def login(
    payload: Any = Body(default=None),
    settings: Settings = Depends(get_app_settings),
):
    """
    Any body that does not carry the matching password string is a 401.
    """
    password = payload.get("password") if isinstance(payload, dict) else None
    if not password_matches(password, settings.admin_password):
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED, "Invalid password", success=False
        )
    return LoginResponse(success=True, token=settings.admin_token)


router.include_router(admin_router)

