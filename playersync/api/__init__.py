"""HTTP operator surface for the migrators."""
