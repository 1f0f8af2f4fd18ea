"""
Error taxonomy shared by every app.

Views and services raise these; ``QuizMaster.middleware.JsonErrorMiddleware``
turns them into JSON responses. ``public_message`` is what the caller sees,
``message`` is what gets logged.
"""


class QuizMasterError(Exception):
    status_code = 500
    default_message = "Something went wrong on the server. Please try again."

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    @property
    def public_message(self):
        return self.message

    def to_dict(self):
        data = {"message": self.public_message}
        if self.errors:
            data["errors"] = self.errors
        return data


class ValidationError(QuizMasterError):
    status_code = 400
    default_message = "Invalid request"


class EmptyQuiz(ValidationError):
    default_message = "Quiz has no questions"


class UnreadableContentError(ValidationError):
    default_message = "File content is empty or unreadable"


class UnsupportedType(ValidationError):
    default_message = "Invalid file type. Only PDF, TXT, and Word documents are allowed."


class AttemptStateError(ValidationError):
    default_message = "This action is not allowed in the current state of the attempt"


class NotFound(QuizMasterError):
    status_code = 404
    default_message = "Not found"


class Unauthenticated(QuizMasterError):
    status_code = 401
    default_message = "Authentication failed"

    def __init__(self, message=None, reason=None):
        # reason is for the logs only
        self.reason = reason
        super().__init__(message)


class UpstreamFailure(QuizMasterError):
    status_code = 502
    default_message = "The service is temporarily unavailable. Please try again."

    @property
    def public_message(self):
        return self.default_message


class InternalError(QuizMasterError):
    status_code = 500

    @property
    def public_message(self):
        return self.default_message
