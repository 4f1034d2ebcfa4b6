"""HTTP transport for the accessibility tools."""
