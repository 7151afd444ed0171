# This file marks the API package for the grain price dashboard service.
# The FastAPI application lives in `app.py`; routers, schemas, and services sit in sibling packages.
