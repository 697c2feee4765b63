"""Domain layer (pure logic).

- Keep reward rules, rarity rolls and cooldown calculations here.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no Redis.
- Prefer deterministic functions (time/random passed in as arguments if needed).
"""
