"""API layer: routers, dependency providers and error handling."""
