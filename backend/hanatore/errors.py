from __future__ import annotations


class HanatoreError(Exception):
	"""Base error carrying a stable machine-readable code and an HTTP status."""

	code = "internal_error"
	status_code = 500
	default_message = "An unexpected error occurred"

	def __init__(self, message: str | None = None) -> None:
		self.message = message or self.default_message
		super().__init__(self.message)

	def to_dict(self) -> dict:
		return {"error": self.code, "message": self.message}


class NotFoundError(HanatoreError):
	code = "not_found"
	status_code = 404
	default_message = "Resource not found"


class InvalidStateTransition(HanatoreError):
	code = "invalid_state"
	status_code = 400
	default_message = "Operation not allowed in the current state"


class SessionAlreadyCompleted(InvalidStateTransition):
	code = "session_completed"
	default_message = "Session is already completed"


class NoAnswers(InvalidStateTransition):
	code = "no_answers"
	default_message = "Cannot complete session without answers"


class UpstreamEvaluationFailure(HanatoreError):
	# Absorbed by the evaluation gateway, never rendered to clients
	code = "upstream_evaluation_failure"
	default_message = "Generative backend evaluation failed"
