"""Database models for the reputation engine.

This module imports all models to ensure they are registered
with SQLAlchemy's declarative base.
"""

from db.models.tenant import Tenant
from db.models.api_key import APIKey
from db.models.integration import Integration
from db.models.campaign import Campaign
from db.models.routing_outcome import RoutingOutcomeRecord
from db.models.routing_visit import RoutingVisit

__all__ = [
    "Tenant",
    "APIKey",
    "Integration",
    "Campaign",
    "RoutingOutcomeRecord",
    "RoutingVisit",
]
