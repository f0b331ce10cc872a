"""Serving: ASGI request pipeline, port resolution, TLS, and bootstrap."""
