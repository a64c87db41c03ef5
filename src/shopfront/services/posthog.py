"""PostHog event tracking for login and authentication outcomes."""

import posthog

from shopfront.config import Settings


class PostHogService:
    """
    Sends analytics events to PostHog.

    Without an API key every call is a no-op, which is how tests and local
    development run.
    """

    def __init__(self, api_key: str | None, host: str = "https://app.posthog.com") -> None:
        self.api_key = api_key
        if api_key:
            posthog.api_key = api_key
            posthog.host = host

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostHogService":
        return cls(api_key=settings.posthog_api_key, host=settings.posthog_host)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def capture(self, distinct_id: str, event: str, properties: dict | None = None) -> None:
        """
        Record ``event`` for ``distinct_id``.

        Args:
            distinct_id: User UUID, or "anonymous" when the caller is not authenticated
            event: Event name such as "user_logged_in" or "authentication_failed"
            properties: Extra event properties

        Example:
            >>> analytics = PostHogService.from_settings(settings)
            >>> analytics.capture(str(user_id), "user_logged_in", {"provider": "oidc"})
        """
        if not self.enabled:
            return

        posthog.capture(distinct_id=distinct_id, event=event, properties=properties or {})
