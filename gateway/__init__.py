"""GraphQL composition gateway over the auth, product, order, category and coupon services."""
