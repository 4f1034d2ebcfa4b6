"""Standards documentation: fetching, caching, and scheduled refresh."""
