"""NFT storefront listing normalization and aggregation."""
