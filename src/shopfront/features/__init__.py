"""Feature modules exposing the REST API."""
