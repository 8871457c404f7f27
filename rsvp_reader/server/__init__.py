"""HTTP API for hosted playback sessions.

WHY: Lets a browser or any HTTP client drive the pacing engine without
embedding Python.

HOW: app.py defines the FastAPI routes, sessions.py the in-memory session
store, models.py the Pydantic schemas.
"""
