"""Subscription plan catalog and pending subscription requests."""
from __future__ import annotations

from typing import Optional

from loguru import logger
from pydantic import BaseModel

from pavilo.core.exceptions import NotFound, SerializationError
from pavilo.core.ids import new_id
from pavilo.core.storage import SUBSCRIPTIONS_KEY, Storage, load_collection, save_collection
from pavilo.models.records import SubscriptionRequest


class Plan(BaseModel):
    key: str
    name: str
    price: int  # rupees per year
    period: str = "/year"
    description: str
    features: list[str]
    popular: bool = False


PLANS: dict[str, Plan] = {
    "basic": Plan(
        key="basic",
        name="Basic",
        price=999,
        description="Perfect for small shops",
        features=[
            "Basic billing & invoicing",
            "Customer management",
            "Inventory tracking (100 items)",
            "Monthly reports",
            "WhatsApp sharing",
            "Cloud backup",
        ],
    ),
    "pro": Plan(
        key="pro",
        name="Pro",
        price=1499,
        description="Most popular for growing businesses",
        popular=True,
        features=[
            "Advanced billing & invoicing",
            "Unlimited customers",
            "Inventory tracking (1000 items)",
            "GST reports & filing",
            "Multi-language support",
            "Priority support",
            "Advanced analytics",
            "Cloud backup & sync",
        ],
    ),
    "advanced": Plan(
        key="advanced",
        name="Advanced",
        price=2499,
        description="For established businesses",
        features=[
            "Everything in Pro",
            "Unlimited inventory",
            "Multi-location support",
            "Custom invoice templates",
            "API access",
            "White-label options",
            "Dedicated support",
            "Advanced integrations",
        ],
    ),
}


def get_plan(plan_key: str) -> Plan:
    plan = PLANS.get(plan_key.lower())
    if plan is None:
        raise NotFound("Plan", plan_key)
    return plan


def list_subscriptions(storage: Storage, user_id: Optional[str] = None) -> list[SubscriptionRequest]:
    try:
        requests = load_collection(storage, SUBSCRIPTIONS_KEY, SubscriptionRequest) or []
    except SerializationError as exc:
        logger.warning(f"plans: {exc}; starting with an empty list")
        requests = []
    if user_id is None:
        return requests
    return [r for r in requests if r.user_id == user_id]


def request_subscription(
    storage: Storage, user_id: str, plan_key: str, email: Optional[str] = None
) -> SubscriptionRequest:
    """Record a pending subscription; confirmation happens outside this system."""
    plan = get_plan(plan_key)
    # raises SerializationError on unreadable stored requests
    requests = load_collection(storage, SUBSCRIPTIONS_KEY, SubscriptionRequest) or []
    record = SubscriptionRequest(
        id=new_id(),
        user_id=user_id,
        email=email,
        plan_name=plan.key,
        price=plan.price,
    )
    requests.append(record)
    save_collection(storage, SUBSCRIPTIONS_KEY, requests)
    logger.info(f"plans: user {user_id} requested plan '{plan.key}'")
    return record
