"""
Pydantic schemas for the portfolio API requests and responses.

Stored records are returned as plain documents (dicts) so that fields a
visitor submitted with a contact message come back unchanged.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class PortfolioDataResponse(BaseModel):
    settings: Optional[dict] = None
    projects: list[dict]
    blogs: list[dict]


class SettingsUpdateResponse(BaseModel):
    message: str
    settings: dict


class ProjectCreateResponse(BaseModel):
    message: str
    project: dict


class BlogCreateResponse(BaseModel):
    message: str
    blog: dict


class ContactCreateResponse(BaseModel):
    message: str
    contact: dict


class LoginResponse(BaseModel):
    success: bool
    token: str
