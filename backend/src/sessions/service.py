"""Session workflow service.

Sessions are notarization appointments. The creator invites people by
email, invitees accept or decline, participants upload files, and the creator
finally sends the session for notarization, which spawns a pending
NotarizationDocument.

Every change to a session row is a conditional update on ``version`` so two
concurrent writers (e.g. two invitees answering at once) cannot lose each
other's change.
"""

import calendar
import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import update
from sqlalchemy.orm import Session

from auth.roles import UserRole, is_privileged
from config import get_settings
from domain.notifications import NotificationPort, document_created_message, session_invitation_message
from errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from models.base import utcnow
from models.notarization_document import NotarizationDocument
from models.notary_session import NotarySession
from models.user import User
from notarization.notify import deliver
from notarization.service import NotarizationService
from observability.metrics import session_events_total
from . import status as rules
from .schemas import SessionCreate
from .status import InviteeStatus, SessionStatus

logger = logging.getLogger(__name__)


def is_creator(session: NotarySession, user: User) -> bool:
    return session.created_by == user.id


def is_participant(session: NotarySession, user: User) -> bool:
    """Creator or anyone on the invitee list."""
    return is_creator(session, user) or rules.find_invitee(session.users or [], user.email) is not None


def is_accepted_participant(session: NotarySession, user: User) -> bool:
    if is_creator(session, user):
        return True
    entry = rules.find_invitee(session.users or [], user.email)
    return entry is not None and entry.get("status") == InviteeStatus.ACCEPTED.value


def session_bounds(session: NotarySession, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    start = datetime.combine(session.start_date, session.start_time, tzinfo=tz)
    end = datetime.combine(session.end_date, session.end_time, tzinfo=tz)
    return start, end


class SessionService:
    """Service for the session workflow and its queries."""

    def __init__(self, db: Session, notifier: Optional[NotificationPort] = None,
                 tz: Optional[ZoneInfo] = None):
        self.db = db
        self.notifier = notifier
        self.tz = tz or ZoneInfo(get_settings().SESSION_TIMEZONE)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_session(self, session_id: UUID) -> NotarySession:
        """Raises NotFoundError for unknown ids."""
        session = self.db.query(NotarySession).filter(NotarySession.id == session_id).first()
        if not session:
            raise NotFoundError("Session not found")
        return session

    def get_visible_session(self, session_id: UUID, user: User) -> NotarySession:
        session = self.get_session(session_id)
        if not is_privileged(user.role) and not is_participant(session, user):
            raise ForbiddenError("You do not have access to this session")
        return session

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_session(self, user: User, data: SessionCreate) -> NotarySession:
        emails = [u.email.lower() for u in data.users]
        if user.email.lower() in emails:
            raise BadRequestError("The session creator cannot be invited to their own session")

        session = NotarySession(
            session_name=data.sessionName,
            notary_field=data.notaryField,
            notary_service=data.notaryService,
            start_date=data.startDate,
            start_time=data.startTime,
            end_date=data.endDate,
            end_time=data.endTime,
            users=rules.new_invitees(emails),
            files=[],
            created_by=user.id,
            status=SessionStatus.DRAFT.value,
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)

        session_events_total.labels(event="created").inc()
        logger.info(
            f"Session created: invitees={len(emails)}",
            extra={"session_id": session.id, "user_id": user.id}
        )

        self._invite(session, user, emails, "Session created")
        return session

    def add_users(self, session_id: UUID, user: User, emails: List[str]) -> NotarySession:
        session = self._get_editable(session_id, user)
        creator = self.db.query(User).filter(User.id == session.created_by).first()

        try:
            users = rules.add_invitees(session.users or [], emails, creator.email)
        except rules.SessionStateError as e:
            raise BadRequestError(str(e))

        self._write(session, users=users)
        logger.info(f"Invitees added: {len(emails)}", extra={"session_id": session.id, "user_id": user.id})

        self._invite(session, creator, [e.lower() for e in emails], "Users added to session")
        return session

    def delete_user(self, session_id: UUID, user: User, email: str) -> NotarySession:
        session = self._get_editable(session_id, user)

        try:
            users = rules.remove_invitee(session.users or [], email)
        except rules.NotInvitedError as e:
            raise NotFoundError(str(e))
        except rules.SessionStateError as e:
            raise BadRequestError(str(e))

        self._write(session, users=users)
        logger.info("Invitee removed", extra={"session_id": session.id, "user_id": user.id})
        return session

    def join_session(self, session_id: UUID, user: User, action: str) -> NotarySession:
        """Accept or decline an invitation.

        Raises:
            NotFoundError: Unknown session
            ForbiddenError: Caller is not invited
            BadRequestError: Invalid action, already answered, or session closed
        """
        session = self.get_session(session_id)
        try:
            rules.ensure_draft(session.status)
            users = rules.respond(session.users or [], user.email, action, str(user.id), utcnow())
        except rules.NotInvitedError as e:
            raise ForbiddenError(str(e))
        except rules.SessionStateError as e:
            raise BadRequestError(str(e))

        new_status = rules.status_after_response(users)
        self._write(session, users=users, status=new_status.value)

        session_events_total.labels(event="joined" if action == "accept" else "rejected").inc()
        if new_status == SessionStatus.CANCELLED:
            session_events_total.labels(event="cancelled").inc()
            logger.info("Session cancelled: no invitee left", extra={"session_id": session.id})

        logger.info(f"Invitation answered: {action}", extra={"session_id": session.id, "user_id": user.id})
        return session

    def ensure_can_upload(self, session: NotarySession, user: User) -> None:
        """Only the creator and accepted invitees may add files to a draft."""
        if not is_accepted_participant(session, user):
            raise ForbiddenError("Only the creator or accepted participants can upload documents")
        try:
            rules.ensure_draft(session.status)
        except rules.SessionStateError as e:
            raise BadRequestError(str(e))

    def add_files(self, session: NotarySession, user: User, entries: List[dict]) -> NotarySession:
        self._write(session, files=list(session.files or []) + entries)
        logger.info(f"Session files uploaded: {len(entries)}", extra={"session_id": session.id, "user_id": user.id})
        return session

    def send_for_notarization(self, session_id: UUID, user: User) -> Tuple[NotarySession, NotarizationDocument]:
        """Submit a draft session and spawn its notarization document.

        Checks run in order: unknown session (404), caller not the creator
        (403), no files (400), session not a draft (400).
        """
        session = self.get_session(session_id)
        if not is_creator(session, user):
            raise ForbiddenError("Only the session creator can send for notarization")
        if not session.files:
            raise BadRequestError("No documents to send for notarization")
        try:
            rules.ensure_draft(session.status)
        except rules.SessionStateError as e:
            raise BadRequestError(str(e))

        documents = NotarizationService(self.db)
        document = documents.build_document(
            user,
            {
                "notarizationService": session.notary_service,
                "notarizationField": session.notary_field,
                "requesterInfo": {
                    "citizenId": user.citizen_id,
                    "phoneNumber": user.phone_number,
                    "email": user.email,
                },
            },
            list(session.files),
            session_id=session.id,
        )
        self._write(session, status=SessionStatus.SUBMITTED.value, document_id=document.id)
        self.db.refresh(document)

        session_events_total.labels(event="submitted").inc()
        logger.info(
            "Session sent for notarization",
            extra={"session_id": session.id, "document_id": document.id, "user_id": user.id}
        )

        deliver(
            self.notifier,
            kind="document_created",
            recipients=[user.email],
            message=document_created_message(document.id, (session.notary_service or {}).get("name", session.session_name)),
            resource_id=document.id,
            saved_message="Session sent for notarization",
        )
        return session, document

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _visible(self, sessions: List[NotarySession], user: User) -> List[NotarySession]:
        if is_privileged(user.role):
            return sessions
        return [s for s in sessions if is_participant(s, user)]

    def _ordered(self):
        return self.db.query(NotarySession).order_by(
            NotarySession.start_date.asc(), NotarySession.start_time.asc()
        )

    def get_all_sessions(self, user: User) -> List[NotarySession]:
        return self._visible(self._ordered().all(), user)

    def get_sessions_by_user(self, user: User) -> List[NotarySession]:
        """Sessions the caller created or was invited to, whatever their role."""
        return [s for s in self._ordered().all() if is_participant(s, user)]

    def get_sessions_by_date(self, user: User, day: date) -> List[NotarySession]:
        """Sessions whose [start_date, end_date] contains ``day``."""
        sessions = self._ordered().filter(
            NotarySession.start_date <= day,
            NotarySession.end_date >= day,
        ).all()
        return self._visible(sessions, user)

    def get_sessions_by_month(self, user: User, day: date) -> List[NotarySession]:
        """Sessions overlapping the calendar month of ``day``."""
        first = day.replace(day=1)
        last = day.replace(day=calendar.monthrange(day.year, day.month)[1])
        sessions = self._ordered().filter(
            NotarySession.start_date <= last,
            NotarySession.end_date >= first,
        ).all()
        return self._visible(sessions, user)

    def get_active_sessions(self, user: User, now: Optional[datetime] = None) -> List[NotarySession]:
        """Sessions in progress at ``now`` (evaluated in the configured timezone)."""
        now = (now or datetime.now(timezone.utc)).astimezone(self.tz)
        today = now.date()
        candidates = self._ordered().filter(
            NotarySession.start_date <= today,
            NotarySession.end_date >= today,
            NotarySession.status != SessionStatus.CANCELLED.value,
        ).all()

        active = []
        for session in candidates:
            start, end = session_bounds(session, self.tz)
            if start <= now <= end:
                active.append(session)
        return self._visible(active, user)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_editable(self, session_id: UUID, user: User) -> NotarySession:
        session = self.get_session(session_id)
        if not is_creator(session, user) and user.role != UserRole.ADMIN.value:
            raise ForbiddenError("Only the session creator can change the invitee list")
        try:
            rules.ensure_draft(session.status)
        except rules.SessionStateError as e:
            raise BadRequestError(str(e))
        return session

    def _write(self, session: NotarySession, **values) -> None:
        """Conditional update on ``version``; commits on success.

        Raises:
            ConflictError: The row changed since it was read
        """
        expected = session.version
        result = self.db.execute(
            update(NotarySession)
            .where(NotarySession.id == session.id, NotarySession.version == expected)
            .values(version=expected + 1, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise ConflictError("Session was changed by another request, reload and try again")

        self.db.commit()
        self.db.refresh(session)

    def _invite(self, session: NotarySession, organizer: User, emails: List[str], saved_message: str) -> None:
        deliver(
            self.notifier,
            kind="session_invitation",
            recipients=emails,
            message=session_invitation_message(session.id, session.session_name, organizer.name),
            resource_id=session.id,
            saved_message=saved_message,
        )
