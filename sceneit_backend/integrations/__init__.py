"""
External metadata integrations (TMDb).

Provider clients live under this namespace and map responses into
`sceneit_backend.models.metadata` at the boundary, so the progress engine never sees
raw provider payloads.
"""
