"""
FastAPI routers for all API endpoints.

One module per resource (invoices, quotations, customers, ...). Protected
routers take the caller from get_authenticated_user and map service errors
to {"error", "details"} bodies via backend.utils.errors.
"""
