"""
Data Models
===========

Pydantic models for palettes, grids, jobs and API payloads.
"""
