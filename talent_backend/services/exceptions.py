class ProfileServiceError(Exception):
    """Base exception for profile services."""
    pass


class ProfileNotFoundError(ProfileServiceError):
    """Raised when an update targets a subject with no profile."""

    def __init__(self, subject_id: str):
        super().__init__(f"No profile exists for subject {subject_id}")
        self.subject_id = subject_id


class MalformedPayloadError(ProfileServiceError):
    """Exception for payloads or questionnaire documents with an invalid shape."""
    pass


class PersistenceError(ProfileServiceError):
    """Exception for failed datastore operations."""
    pass


class DuplicateProfileError(PersistenceError):
    """Exception for inserts rejected by the one-profile-per-subject constraint."""
    pass
