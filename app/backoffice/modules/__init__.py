"""
Record-type and settings modules live under this package.

Keep module boundaries clean: each module owns its models/service/routes,
while reusing platform primitives (sessions, RBAC, lifecycle, audit, DB session).
"""
