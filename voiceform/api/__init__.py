"""Read-side HTTP API for stored interviews and local media."""
