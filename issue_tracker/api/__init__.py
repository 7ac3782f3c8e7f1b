"""HTTP routers, request/response schemas and dependencies."""
