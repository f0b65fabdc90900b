"""Strawberry resolvers: queries, namespaced mutations, subscriptions."""

from mealsync.graphql_api.resolvers.mutations import Mutation
from mealsync.graphql_api.resolvers.queries import Query
from mealsync.graphql_api.resolvers.subscriptions import Subscription

__all__ = ["Mutation", "Query", "Subscription"]
