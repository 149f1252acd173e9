"""Domain layer (pure logic).

- Keep game rules, lifecycle transitions and the error taxonomy here.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no Redis.
- Prefer deterministic functions (time and identifiers passed in as arguments).
"""
