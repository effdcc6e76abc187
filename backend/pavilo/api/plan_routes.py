"""
Subscription plan routes.

Endpoints:
  GET  /api/plans                      – available plans
  GET  /api/plans/requests             – the caller's subscription requests
  POST /api/plans/{plan}/subscribe     – request a plan (login required)
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pavilo.api.deps import CurrentUser, get_current_user
from pavilo.core.exceptions import NotFound
from pavilo.core.storage import Storage, get_storage
from pavilo.models.records import SubscriptionRequest
from pavilo.services.plans import PLANS, Plan, list_subscriptions, request_subscription

plan_router = APIRouter(prefix="/api/plans", tags=["plans"])


@plan_router.get("", response_model=list[Plan])
def list_plans():
    return list(PLANS.values())


@plan_router.get("/requests", response_model=list[SubscriptionRequest])
def my_requests(
    user: CurrentUser = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return list_subscriptions(storage, user_id=user.id)


@plan_router.post("/{plan_key}/subscribe", response_model=SubscriptionRequest, status_code=201)
def subscribe(
    plan_key: str,
    user: CurrentUser = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    try:
        return request_subscription(storage, user.id, plan_key, email=user.email)
    except NotFound:
        raise HTTPException(status_code=404, detail=f"Unknown plan '{plan_key}'")
