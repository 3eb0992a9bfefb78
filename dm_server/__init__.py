"""
DM Server module.

FastAPI application exposing the container controller over HTTP.
"""
