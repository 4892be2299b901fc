"""Dramatiq actors."""

import jobs.broker  # noqa: F401  (actors bind to the Redis broker)
