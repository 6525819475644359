"""
AI consult endpoints - suitability of a product or a cart for the caller's profile.
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, status, Depends

from ..agents.food_safety_agent import FoodSafetyAgent, build_consult_profile
from ..models import CartConsultRequest, ConsultProfile, ConsultRequest, envelope
from ..storage.profile_storage import ProfileStorage
from ..utils.auth import ensure_same_user, get_optional_username
from .deps import get_food_safety_agent, get_profile_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


async def _consult_profile(
    current_username: Optional[str],
    requested_username: Optional[str],
    profiles: ProfileStorage
) -> ConsultProfile:
    """Profile of the caller; anonymous callers and users without a profile get the guest profile."""
    if current_username is None:
        return build_consult_profile(None)
    username = ensure_same_user(current_username, requested_username)
    return build_consult_profile(await profiles.get(username))


@router.post("/consult")
async def consult(
    request: ConsultRequest,
    current_username: Optional[str] = Depends(get_optional_username),
    profiles: ProfileStorage = Depends(get_profile_storage),
    agent: FoodSafetyAgent = Depends(get_food_safety_agent)
):
    """Verdict and alternatives for a single product."""
    if request.product is None or not request.product.name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing product data")

    profile = await _consult_profile(current_username, request.username, profiles)
    verdict = await agent.analyze_product(request.product, profile)
    return envelope(data=verdict.to_api())


@router.post("/consult-cart")
async def consult_cart(
    request: CartConsultRequest,
    current_username: Optional[str] = Depends(get_optional_username),
    profiles: ProfileStorage = Depends(get_profile_storage),
    agent: FoodSafetyAgent = Depends(get_food_safety_agent)
):
    """Per-item verdicts and a match score for a list of product names."""
    names = [name.strip() for name in request.products or [] if name and name.strip()]
    if not names:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing products list")

    profile = await _consult_profile(current_username, request.username, profiles)
    verdict = await agent.analyze_cart(names, profile)
    return envelope(data=verdict.to_api())
