"""eBird input tables: column mappings and loading."""
