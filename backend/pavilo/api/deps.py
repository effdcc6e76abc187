"""FastAPI dependencies: storage-backed services and the caller's identity."""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from pydantic import BaseModel

from pavilo.core.storage import Storage, get_storage
from pavilo.services.catalog import ProductCatalog
from pavilo.services.directory import CustomerDirectory
from pavilo.services.ledger import PaymentLedger
from pavilo.services.preferences import AppPreferences


def get_catalog(storage: Storage = Depends(get_storage)) -> ProductCatalog:
    return ProductCatalog(storage)


def get_directory(storage: Storage = Depends(get_storage)) -> CustomerDirectory:
    return CustomerDirectory(storage)


def get_ledger(storage: Storage = Depends(get_storage)) -> PaymentLedger:
    return PaymentLedger(storage)


def get_preferences(request: Request, storage: Storage = Depends(get_storage)) -> AppPreferences:
    """The preferences object built at startup, or a fresh one outside the app lifespan."""
    prefs = getattr(request.app.state, "preferences", None)
    if prefs is None:
        prefs = AppPreferences.from_storage(storage)
        request.app.state.preferences = prefs
    return prefs


class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
) -> CurrentUser:
    """Identity forwarded by the authentication provider in front of the API."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Please log in first")
    return CurrentUser(id=x_user_id, email=x_user_email)
