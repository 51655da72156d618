from resume_api.models.user import User
from resume_api.models.document import CoverLetter, DocumentMixin, Resume

__all__ = ["User", "DocumentMixin", "Resume", "CoverLetter"]
