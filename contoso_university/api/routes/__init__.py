"""
API route modules for operational endpoints.

Routers are included from contoso_university.api.main under the /api/v1 prefix.
"""
