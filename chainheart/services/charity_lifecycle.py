"""Charity lifecycle manager - registration requests and their review.

A request starts PENDING and is either APPROVED or REJECTED. Both review
transitions are a compare-and-set on the status column, so concurrent
reviewers cannot both win.
"""

from typing import Any, Callable, ContextManager, List, Mapping, Optional, Union

from sqlalchemy import update
from sqlalchemy.orm import Session

from chainheart.convert import charity_request_record, charity_request_row
from chainheart.db.models import CharityRequest, utcnow
from chainheart.db.session import get_session
from chainheart.errors import ExternalDependencyError, InvalidTransitionError, NotFoundError, ValidationError
from chainheart.log import get_logger
from chainheart.schemas import (
    CharityRequestCreate,
    CharityRequestRecord,
    CharityRequestUpdate,
    RequestStatus,
    parse_input,
)
from chainheart.services.notifications import NotificationDispatcher
from chainheart.services.storage import LocalFileStorage, Upload

logger = get_logger(__name__)

APPROVAL_SUBJECT = "Welcome to Charity App"
APPROVAL_BODY = "Congratulations your request to register charity has been approved."


def _parse_status(status: Union[RequestStatus, str]) -> RequestStatus:
    try:
        return RequestStatus(status)
    except ValueError as e:
        raise ValidationError(f"Unknown charity request status: {status!r}") from e


class CharityLifecycleManager:
    """Owns the CharityRequest state machine."""

    def __init__(
        self,
        storage: LocalFileStorage,
        dispatcher: Optional[NotificationDispatcher] = None,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
        clock: Callable[[], Any] = utcnow,
    ):
        """Initialize the lifecycle manager.

        Args:
            storage: Where logos and verification documents are kept
            dispatcher: Sends the approval notification (skipped when None)
            session_factory: Context manager factory yielding a Session
            clock: Returns the naive-UTC "now" used for submitted_at
        """
        self.storage = storage
        self.dispatcher = dispatcher
        self._session_factory = session_factory
        self._clock = clock

    def submit(
        self,
        request: Union[CharityRequestCreate, Mapping[str, Any]],
        verification_document: Optional[Upload],
        logo: Optional[Upload] = None,
    ) -> CharityRequestRecord:
        """Submit a registration request.

        The uploaded files are stored first; if the request cannot be
        saved, the files just stored are deleted again.

        Args:
            request: Form fields of the request
            verification_document: Required proof document
            logo: Optional charity logo

        Returns:
            The new request in PENDING state

        Raises:
            ValidationError: If fields or the verification document are missing
            ExternalDependencyError: If storage fails
        """
        data = parse_input(CharityRequestCreate, request)
        if verification_document is None or not verification_document.data:
            raise ValidationError("Verification document is required")

        stored: List[str] = []
        try:
            verification_ref = self.storage.store(verification_document.data, verification_document.filename)
            stored.append(verification_ref)
            logo_ref = None
            if logo is not None and logo.data:
                logo_ref = self.storage.store(logo.data, logo.filename)
                stored.append(logo_ref)

            with self._session_factory() as session:
                row = charity_request_row(data, verification_ref, logo_ref, self._clock())
                session.add(row)
                session.flush()
                record = charity_request_record(row)
        except Exception:
            for reference in stored:
                self._release(reference)
            raise

        logger.info(f"Charity request {record.id} submitted for {record.charity_name} ({record.wallet_address})")
        return record

    def approve(self, request_id: int) -> CharityRequestRecord:
        """Approve a pending request and notify the charity.

        The notification is sent after the approval is committed; a failed
        or slow notification is logged and does not undo the approval.

        Raises:
            NotFoundError: If the request does not exist
            InvalidTransitionError: If the request is not PENDING
        """
        record = self._transition(request_id, RequestStatus.APPROVED)
        self._notify_approved(record)
        return record

    def reject(self, request_id: int) -> CharityRequestRecord:
        """Reject a pending request.

        Raises:
            NotFoundError: If the request does not exist
            InvalidTransitionError: If the request is not PENDING
        """
        return self._transition(request_id, RequestStatus.REJECTED)

    def update_by_admin(self, request_id: int, status: Union[RequestStatus, str]) -> CharityRequestRecord:
        """Set any status directly, bypassing the state machine.

        Raises:
            ValidationError: If the status is unknown
            NotFoundError: If the request does not exist
        """
        target = _parse_status(status)
        with self._session_factory() as session:
            row = session.get(CharityRequest, request_id)
            if row is None:
                raise NotFoundError(f"Charity request not found: {request_id}")
            previous = row.status
            row.status = target.value
            session.flush()
            record = charity_request_record(row)

        logger.info(f"Charity request {request_id} set by admin from {previous} to {target.value}")
        return record

    def update_details(
        self,
        request_id: int,
        fields: Union[CharityRequestUpdate, Mapping[str, Any]],
        logo_changed: bool = False,
        logo: Optional[Upload] = None,
    ) -> CharityRequestRecord:
        """Update the descriptive fields of a request in any state.

        Only the fields present in ``fields`` are changed. When
        ``logo_changed`` is set the new logo is stored, the previous one
        is deleted, and the new reference is recorded.

        Raises:
            ValidationError: If fields are malformed, or logo_changed is set
                without a logo
            NotFoundError: If the request does not exist
            ExternalDependencyError: If storing the new logo fails
        """
        changes = parse_input(CharityRequestUpdate, fields).changes()
        if logo_changed and (logo is None or not logo.data):
            raise ValidationError("Logo marked as changed but no logo was provided")

        new_logo_ref = None
        try:
            with self._session_factory() as session:
                row = (
                    session.query(CharityRequest)
                    .filter(CharityRequest.id == request_id)
                    .with_for_update()
                    .first()
                )
                if row is None:
                    raise NotFoundError(f"Charity request not found: {request_id}")

                for name, value in changes.items():
                    setattr(row, name, value)

                if logo_changed:
                    new_logo_ref = self.storage.store(logo.data, logo.filename)
                    self._release(row.logo_url)
                    row.logo_url = new_logo_ref

                session.flush()
                record = charity_request_record(row)
        except Exception:
            if new_logo_ref is not None:
                self._release(new_logo_ref)
            raise

        logger.info(f"Charity request {request_id} details updated: {sorted(changes)}")
        return record

    def delete(self, request_id: int) -> None:
        """Delete a request. Stored files are left in place.

        Raises:
            NotFoundError: If the request does not exist
        """
        with self._session_factory() as session:
            row = session.get(CharityRequest, request_id)
            if row is None:
                raise NotFoundError(f"Charity request not found: {request_id}")
            session.delete(row)

        logger.info(f"Charity request {request_id} deleted")

    def find(self, request_id: int) -> Optional[CharityRequestRecord]:
        """Find a request by id; None when absent."""
        with self._session_factory() as session:
            row = session.get(CharityRequest, request_id)
            if row is None:
                logger.debug(f"Charity request not found: {request_id}")
                return None
            return charity_request_record(row)

    def list_requests(self, status: Optional[Union[RequestStatus, str]] = None) -> List[CharityRequestRecord]:
        """All requests in submission order, optionally filtered by status."""
        with self._session_factory() as session:
            query = session.query(CharityRequest)
            if status is not None:
                query = query.filter(CharityRequest.status == _parse_status(status).value)
            return [charity_request_record(row) for row in query.order_by(CharityRequest.id).all()]

    def _transition(self, request_id: int, target: RequestStatus) -> CharityRequestRecord:
        with self._session_factory() as session:
            result = session.execute(
                update(CharityRequest)
                .where(
                    CharityRequest.id == request_id,
                    CharityRequest.status == RequestStatus.PENDING.value,
                )
                .values(status=target.value)
            )
            if result.rowcount == 0:
                row = session.get(CharityRequest, request_id)
                if row is None:
                    raise NotFoundError(f"Charity request not found: {request_id}")
                raise InvalidTransitionError(
                    f"Charity request {request_id} is {row.status}; only PENDING requests can be "
                    f"{target.value.lower()}"
                )
            row = session.get(CharityRequest, request_id)
            record = charity_request_record(row)

        logger.info(f"Charity request {request_id} {target.value}")
        return record

    def _notify_approved(self, record: CharityRequestRecord) -> None:
        if self.dispatcher is None:
            logger.debug(f"No notifier configured; skipping approval mail for request {record.id}")
            return
        try:
            delivered = self.dispatcher.dispatch(record.email, APPROVAL_SUBJECT, APPROVAL_BODY)
        except Exception as e:
            logger.warning(f"Approval notification for request {record.id} could not be dispatched: {e}")
            return
        if not delivered:
            logger.warning(f"Approval notification for request {record.id} was not delivered")

    def _release(self, reference: Optional[str]) -> None:
        try:
            self.storage.delete(reference)
        except ExternalDependencyError as e:
            logger.warning(f"Could not delete stored file {reference}: {e}")
