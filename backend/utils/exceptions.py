"""
Centralized exception definitions for the backend application.
"""

class AppError(Exception):
    """Base class for errors rendered as JSON by the API."""
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"detail": self.message, "type": type(self).__name__}

class NotFoundError(AppError):
    """Raised when a job or export is not found."""
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)

class JobNotFoundError(NotFoundError):
    """Raised when a job id is not (or no longer) in the queue."""
    def __init__(self, job_id: str):
        super().__init__("Job not found")
        self.job_id = job_id

class ValidationError(AppError):
    """Raised when an uploaded batch contains no acceptable media."""
    status_code = 400

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message)

class JobStateError(AppError):
    """Raised when a job is in the wrong state for the request, e.g. exporting an unfinished job."""
    status_code = 409

    def __init__(self, job_id: str, status: str, action: str):
        super().__init__(f"Cannot {action} job in {status} state")
        self.job_id = job_id
        self.status = status

class ProcessingError(AppError):
    """Raised when reading a source or transcribing it fails."""
    status_code = 422

    def __init__(self, message: str = "Processing failed"):
        super().__init__(message)
