from typing import Optional


class AppError(Exception):
    """Base class for all application-level errors.

    Every error carries the message shown to clients and the HTTP status
    it maps to.
    """
    status: int = 500

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        if status is not None:
            self.status = status
        super().__init__(self.message)


class DomainError(AppError):
    """Base for domain logic errors."""
    pass

class ValidationError(DomainError):
    status = 400

class InvalidShowIdError(ValidationError):
    def __init__(self, show_id: str):
        self.show_id = show_id
        super().__init__(f"The show id '{show_id}' has an invalid format.")

class WebhookPayloadError(ValidationError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Could not parse webhook payload: {detail}")

class NotFoundError(DomainError):
    status = 404

class EpisodeNotFoundError(NotFoundError):
    def __init__(self, id_or_slug: str):
        self.id_or_slug = id_or_slug
        super().__init__(f"Episode not found: {id_or_slug}")



class InfrastructureError(AppError):
    """Base for infrastructure-related errors (upstream feeds, etc)."""
    pass

class UpstreamError(InfrastructureError):
    def __init__(self, service: str, detail: str = "", status: Optional[int] = None):
        self.service = service
        self.detail = detail
        super().__init__(f"Error with external service '{service}': {detail}", status)
