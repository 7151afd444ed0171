# This file marks the routers package for API route modules.
# Endpoint modules are grouped by domain: health, dashboard views, and role management.
