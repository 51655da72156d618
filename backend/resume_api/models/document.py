from sqlalchemy import JSON, Column, Text
from resume_api.database import Base


class DocumentMixin:
    """Columns shared by every document collection.

    ``data`` is the presentation layer's payload and is stored as-is.
    """

    id = Column(Text, primary_key=True)
    owner_id = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    data = Column(JSON, nullable=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)


class Resume(DocumentMixin, Base):
    __tablename__ = "resumes"


class CoverLetter(DocumentMixin, Base):
    __tablename__ = "cover_letters"
