# This file marks the services package for API business logic that is not part of the aggregation engine.
