"""
Main GraphQL Schema

Combines the identity and directory operations into one schema.
"""

import strawberry
from strawberry.tools import merge_types

from marketplace.modules.directory.presentation.graphql.resolvers import DirectoryQueries
from marketplace.modules.identity.presentation.graphql.resolvers import (
    IdentityMutations,
    IdentityQueries,
)

Query = merge_types("Query", (IdentityQueries, DirectoryQueries))
Mutation = merge_types("Mutation", (IdentityMutations,))


def create_schema() -> strawberry.Schema:
    return strawberry.Schema(query=Query, mutation=Mutation)
