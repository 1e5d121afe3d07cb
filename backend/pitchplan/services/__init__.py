"""
Services Layer

Pure scheduling and editing services that:
- Accept immutable tournament snapshots (see tournament_state)
- Return new snapshots, never mutating their inputs
- Do NOT depend on HTTP request/response objects
- Touch the database only in tournament_store
"""
