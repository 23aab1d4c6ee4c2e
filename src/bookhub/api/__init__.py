"""Plain HTTP routes served next to the GraphQL endpoint.

Learn: Everything catalog-related goes through GraphQL. The only REST
route is the health check, which load balancers and uptime probes hit
without speaking GraphQL.
"""

from fastapi import APIRouter

from bookhub.api.health import router as health_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
