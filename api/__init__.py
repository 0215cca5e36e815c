"""
HTTP layer

FastAPI routers only: parse requests, call the managers, translate domain
exceptions to HTTP errors.
"""
