"""api/ -- FastAPI application, HTTP models, and versioned routers."""
