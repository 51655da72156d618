import enum
import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from resume_api.errors import Conflict
from resume_api.models.user import User
from resume_api.utils.timestamps import utcnow_iso

logger = logging.getLogger("resume_api.users")


class SyncOutcome(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class SyncResult:
    user: User
    outcome: SyncOutcome


class UserDirectory:
    """Keeps local user rows in step with the identity provider's profile."""

    def get(self, db: Session, subject_id: str) -> User | None:
        return db.query(User).filter(User.id == subject_id).first()

    def reconcile(
        self,
        db: Session,
        subject_id: str,
        email: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> SyncResult:
        """Create, update or leave alone the row for ``subject_id``.

        Only writes when the stored email or names differ from the ones given.
        A concurrent first sync that loses the insert race gets the winner's row.
        """
        first_name = first_name or None
        last_name = last_name or None

        user = self.get(db, subject_id)
        if user is None:
            try:
                user = self._insert(db, subject_id, email, first_name, last_name)
            except Conflict:
                existing = self.get(db, subject_id)
                if existing is None:
                    raise
                logger.info("User %s was created concurrently; using existing row", subject_id)
                return SyncResult(existing, SyncOutcome.UNCHANGED)
            logger.info("Created user %s", subject_id)
            return SyncResult(user, SyncOutcome.CREATED)

        if (user.email, user.first_name, user.last_name) == (email, first_name, last_name):
            return SyncResult(user, SyncOutcome.UNCHANGED)

        user.email = email
        user.first_name = first_name
        user.last_name = last_name
        user.updated_at = utcnow_iso()
        db.commit()
        db.refresh(user)
        logger.info("Updated profile for user %s", subject_id)
        return SyncResult(user, SyncOutcome.UPDATED)

    def delete_user(self, db: Session, subject_id: str) -> bool:
        deleted = db.query(User).filter(User.id == subject_id).delete(synchronize_session=False)
        db.commit()
        return deleted > 0

    def _insert(self, db, subject_id, email, first_name, last_name) -> User:
        now = utcnow_iso()
        user = User(
            id=subject_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise Conflict(f"User {subject_id} already exists") from e
        db.refresh(user)
        return user


user_directory = UserDirectory()
