"""GraphQL schema, context and transport glue."""
