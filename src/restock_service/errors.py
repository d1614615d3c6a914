"""Error taxonomy for the restock pipeline."""


class RestockError(Exception):
    """Base class for restock pipeline errors."""


class AuthenticationFailure(RestockError):
    """Webhook signature missing or invalid. The request must not be processed."""


class MalformedEvent(RestockError):
    """Authenticated body could not be turned into a RestockEvent."""


class ClaimConflict(RestockError):
    """Another pass already holds the claim on a subscription.

    Never propagated; the claim coordinator skips the subscription instead.
    """


class SendFailure(RestockError):
    """A single recipient's message could not be delivered."""

    def __init__(self, subscription_id: str, reason: str):
        super().__init__(f"{subscription_id}: {reason}")
        self.subscription_id = subscription_id
        self.reason = reason


class StoreUnavailable(RestockError):
    """The subscription store could not be reached."""
