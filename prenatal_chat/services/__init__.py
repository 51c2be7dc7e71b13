"""Service layer: chat orchestration, persistence queries, favorites, AI client."""
