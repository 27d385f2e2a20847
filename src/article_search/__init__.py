"""Article search: indexing, cached snapshots and query planning for an article corpus."""
