"""Certificate service layer.

Issues, re-validates, revokes and renders completion certificates. The
caller supplies eligibility, computed by the progress rules.
"""

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from skillhub.certificates.models import Certificate
from skillhub.certificates.templates import render_certificate
from skillhub.core.exports import date_stamp
from skillhub.core.logging import get_logger
from skillhub.courses.models import Course


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class CertificateError(Exception):
    """Base certificate error."""

    def __init__(self, message: str, code: str = "certificate_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CertificateNotEligibleError(CertificateError):
    def __init__(
        self,
        message: str = (
            "Cannot generate certificate. Please unlock and complete all modules first."
        ),
    ):
        super().__init__(message, "not_eligible")


class CertificateNotFoundError(CertificateError):
    def __init__(self, message: str = "No certificate for this course"):
        super().__init__(message, "certificate_not_found")


def certificate_filename(course_id: UUID, day: date) -> str:
    return f"SkillHub-Certificate-{course_id}-{date_stamp(day)}.html"


class CertificateService:
    """Certificate storage and rendering."""

    def __init__(self, session: "Session", keyspace: str, platform_name: str):
        self.session = session
        self.keyspace = keyspace
        self.platform_name = platform_name
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        ks = self.keyspace
        self._get_certificate = self.session.prepare(
            f"SELECT * FROM {ks}.certificates WHERE user_id = ? AND course_id = ?"
        )
        self._insert_certificate = self.session.prepare(f"""
            INSERT INTO {ks}.certificates
            (user_id, course_id, certificate_id, student_name, course_title,
             course_code, instructor, issued_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_certificate = self.session.prepare(
            f"DELETE FROM {ks}.certificates WHERE user_id = ? AND course_id = ?"
        )
        self._get_course_certificates = self.session.prepare(
            f"SELECT * FROM {ks}.certificates_by_course WHERE course_id = ?"
        )
        self._insert_certificate_by_course = self.session.prepare(f"""
            INSERT INTO {ks}.certificates_by_course
            (course_id, user_id, certificate_id, student_name, issued_at)
            VALUES (?, ?, ?, ?, ?)
        """)
        self._delete_certificate_by_course = self.session.prepare(
            f"DELETE FROM {ks}.certificates_by_course WHERE course_id = ? AND user_id = ?"
        )
        self._delete_course_certificates = self.session.prepare(
            f"DELETE FROM {ks}.certificates_by_course WHERE course_id = ?"
        )

    async def get_certificate(self, user_id: UUID, course_id: UUID) -> Certificate | None:
        result = await self.session.aexecute(self._get_certificate, [user_id, course_id])
        row = result.one()
        return Certificate.from_row(row) if row else None

    async def generate(
        self,
        user_id: UUID,
        student_name: str,
        course: Course,
        eligible: bool,
    ) -> Certificate:
        """Issue a certificate, or return the one already issued.

        Raises:
            CertificateNotEligibleError: If the course is not fully completed
        """
        if not eligible:
            raise CertificateNotEligibleError

        existing = await self.get_certificate(user_id, course.id)
        if existing:
            return existing

        certificate = Certificate(
            user_id=user_id,
            course_id=course.id,
            student_name=student_name,
            course_title=course.title,
            course_code=course.code,
            instructor=course.instructor,
            issued_at=datetime.now(UTC),
        )
        await self.session.aexecute(
            self._insert_certificate,
            [
                certificate.user_id,
                certificate.course_id,
                certificate.certificate_id,
                certificate.student_name,
                certificate.course_title,
                certificate.course_code,
                certificate.instructor,
                certificate.issued_at,
            ],
        )
        await self.session.aexecute(
            self._insert_certificate_by_course,
            [
                certificate.course_id,
                certificate.user_id,
                certificate.certificate_id,
                certificate.student_name,
                certificate.issued_at,
            ],
        )
        logger.info(
            "certificate_generated",
            user_id=str(user_id),
            course_id=str(course.id),
            certificate_id=certificate.certificate_id,
        )
        return certificate

    async def get_valid_certificate(
        self, user_id: UUID, course_id: UUID, eligible: bool
    ) -> Certificate:
        """Return the certificate if the course is still fully completed.

        A certificate whose course is no longer completed is revoked.

        Raises:
            CertificateNotFoundError: If none exists or it was just revoked
        """
        certificate = await self.get_certificate(user_id, course_id)
        if certificate is None:
            raise CertificateNotFoundError
        if not eligible:
            await self.revoke(user_id, course_id)
            raise CertificateNotFoundError
        return certificate

    async def revoke(self, user_id: UUID, course_id: UUID) -> bool:
        """Delete a certificate. Returns False when there was none."""
        if await self.get_certificate(user_id, course_id) is None:
            return False
        await self.session.aexecute(self._delete_certificate, [user_id, course_id])
        await self.session.aexecute(
            self._delete_certificate_by_course, [course_id, user_id]
        )
        logger.info("certificate_revoked", user_id=str(user_id), course_id=str(course_id))
        return True

    async def list_course_certificates(self, course_id: UUID) -> list[Certificate]:
        rows = await self.session.aexecute(self._get_course_certificates, [course_id])
        return [Certificate.from_row(row) for row in rows]

    async def delete_course_certificates(self, course_id: UUID, user_ids: list[UUID]) -> None:
        for user_id in user_ids:
            await self.session.aexecute(self._delete_certificate, [user_id, course_id])
        await self.session.aexecute(self._delete_course_certificates, [course_id])

    def render_html(self, certificate: Certificate) -> str:
        return render_certificate(certificate, self.platform_name)
