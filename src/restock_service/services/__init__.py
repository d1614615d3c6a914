"""Restock reconciliation pipeline."""

from restock_service.services.claim_coordinator import ClaimCoordinator
from restock_service.services.dispatcher import NotificationDispatcher
from restock_service.services.engine import RestockEngine, build_engine
from restock_service.services.match_resolver import MatchResolver
from restock_service.services.normalizer import RestockEvent, normalize
from restock_service.services.reconciler import Reconciler

__all__ = [
    "ClaimCoordinator",
    "MatchResolver",
    "NotificationDispatcher",
    "Reconciler",
    "RestockEngine",
    "RestockEvent",
    "build_engine",
    "normalize",
]
