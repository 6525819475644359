"""Agents module - AI agents for product and cart suitability."""

from .base_agent import BaseAgent
from .food_safety_agent import FoodSafetyAgent, build_consult_profile, guest_profile

__all__ = [
    'BaseAgent',
    'FoodSafetyAgent',
    'build_consult_profile',
    'guest_profile',
]
