"""Application services: authorization, change publication, subscriptions."""

from mealsync.application.entity_service import EntityService, build_entity_services
from mealsync.application.mutation_interceptor import MutationInterceptor
from mealsync.application.ownership import CallerContext, MutationArgs, resolve_ownership_key
from mealsync.application.subscription_gateway import Delivery, DeliveryStream, SubscriptionGateway

__all__ = [
    "CallerContext",
    "Delivery",
    "DeliveryStream",
    "EntityService",
    "MutationArgs",
    "MutationInterceptor",
    "SubscriptionGateway",
    "build_entity_services",
    "resolve_ownership_key",
]
