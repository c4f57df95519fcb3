"""Discovery session engine: target resolution, peer registry and session loops."""
