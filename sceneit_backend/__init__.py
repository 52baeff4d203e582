"""
Shared SceneIt backend library code.

This package is intended to hold code that is reused across:
- the FastAPI app in `api/`
- operator scripts in `scripts/`

The watch-progress engine lives in `sceneit_backend.progress` and operates on plain
snapshots; persistence (`repositories/`) and the metadata provider (`integrations/`)
are kept at the edges. App entrypoints should import from `sceneit_backend` rather
than the other way around.
"""
