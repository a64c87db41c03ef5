"""Cross-cutting services: analytics and rate limiting."""

from shopfront.services.posthog import PostHogService

__all__ = ["PostHogService"]
