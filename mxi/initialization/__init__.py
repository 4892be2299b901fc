"""Process initialization helpers shared by the API server and workers."""
