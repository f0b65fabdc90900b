"""GraphQL API (strawberry): types, resolvers, context and schema."""

from mealsync.graphql_api.context import GraphQLContext, create_context_getter
from mealsync.graphql_api.schema import create_schema

__all__ = ["GraphQLContext", "create_context_getter", "create_schema"]
