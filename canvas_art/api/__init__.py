"""
FastAPI REST Endpoints
======================

REST API endpoints for HTTP access to preview and publishing.

Endpoints:
- POST /api/v1/preview: Generate and quantize an image, return its SVG preview
- POST /api/v1/publish: Publish a previewed job in the background
- GET /api/v1/status/{job_id}: Get job status
- GET /api/v1/palette: List canvas colors
- GET /health: Health check endpoint
"""
