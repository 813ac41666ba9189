"""Live dashboard (requires the optional fastapi/uvicorn stack)."""
