"""GraphQL schema factory.

Usage:
    from mealsync.graphql_api.schema import create_schema
    schema = create_schema()
"""

import strawberry

from mealsync.graphql_api.resolvers import Mutation, Query, Subscription


def create_schema() -> strawberry.Schema:
    """Create the Strawberry schema (queries, mutations, subscriptions)."""
    return strawberry.Schema(
        query=Query,
        mutation=Mutation,
        subscription=Subscription,
    )
