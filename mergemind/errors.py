"""
Error taxonomy for the webhook responder.

Generation failures are recovered locally by the comment generator, comment
post failures are logged by the event handler and delivery failures are
logged by the webhook layer. Nothing here is fatal once the server is up.
"""


class MergeMindError(Exception):
    """Base class for all MergeMind errors"""


class ConfigurationError(MergeMindError):
    """Raised at startup when required settings or resources are missing"""


class GenerationError(MergeMindError):
    """The completion call failed, timed out or returned no text"""


class CommentPostError(MergeMindError):
    """Creating an issue comment failed"""


class GitHubAPIError(CommentPostError):
    """GitHub answered with an error status"""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"GitHub API error {status}: {message}")
        self.status = status
        self.message = message


class GitHubTransportError(CommentPostError):
    """The request never produced a GitHub response (connection error, timeout)"""


class MalformedEventError(MergeMindError):
    """A delivery payload is missing fields required to act on it"""


class DeliveryProcessingError(MergeMindError):
    """Raised by the webhook layer while processing a single delivery"""

    def __init__(self, message: str, event_id: str | None = None) -> None:
        super().__init__(message)
        self.event_id = event_id


class SignatureVerificationError(DeliveryProcessingError):
    """X-Hub-Signature-256 is missing or does not match the payload"""


class AggregateDeliveryError(DeliveryProcessingError):
    """One or more handler failures for a delivery"""

    def __init__(self, event_id: str | None, event_name: str, errors: list[Exception]) -> None:
        super().__init__(
            f"{len(errors)} error(s) while handling {event_name} delivery {event_id}",
            event_id=event_id,
        )
        self.event_name = event_name
        self.errors = errors
