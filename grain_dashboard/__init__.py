"""
Grain cash price dashboard analytics service.
It groups the record store boundary, the aggregation engine, and the HTTP API under one import path.
Most functionality lives in the sub-packages; this file intentionally stays lightweight.
"""
