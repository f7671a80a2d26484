import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError

from .constants import (
    CAPACITY,
    CATEGORIES,
    CATEGORY_ALIASES,
    GENDERS,
    GENDER_ALIASES,
    DEFAULT_GENDER,
    ADMISSION_POLICIES,
)
from .errors import ValidationError, DuplicateNameError, CapacityExceededError, NotFoundError
from .models import db, Tenant, Participant, AttendanceLog

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


@dataclass
class Admission:
    participant: Participant
    position: int

    @property
    def is_waitlisted(self) -> bool:
        return self.position > CAPACITY

    def to_dict(self) -> dict:
        data = self.participant.to_dict()
        data['position'] = self.position
        data['is_waitlisted'] = self.is_waitlisted
        return data


@dataclass
class Roster:
    confirmed: List[Participant] = field(default_factory=list)
    waitlist: List[Participant] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.confirmed) + len(self.waitlist)

    def to_dict(self) -> dict:
        return {
            'confirmed': [p.to_dict() for p in self.confirmed],
            'waitlist': [p.to_dict() for p in self.waitlist],
            'capacity': CAPACITY,
        }


def _text(value, field: str) -> str:
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip()


def normalize_name(name: Optional[str]) -> str:
    name = _text(name, 'Name')
    if not name:
        raise ValidationError("Name and category are required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return name


def normalize_category(category: Optional[str]) -> str:
    value = _text(category, 'Category').lower()
    if not value:
        raise ValidationError("Name and category are required")
    value = CATEGORY_ALIASES.get(value, value)
    if value not in CATEGORIES:
        raise ValidationError(f"Category must be one of: {', '.join(CATEGORIES)}")
    return value


def normalize_gender(gender: Optional[str]) -> str:
    value = _text(gender, 'Gender').lower()
    if not value:
        return DEFAULT_GENDER
    value = GENDER_ALIASES.get(value, value)
    if value not in GENDERS:
        raise ValidationError(f"Gender must be one of: {', '.join(GENDERS)}")
    return value


class AdmissionLedger:
    """
    Confirmations for one group's current session.

    Records are ordered by (confirmed_at, id). The first CAPACITY of them are
    confirmed, the rest form the waitlist. Nothing is stored about the split
    itself, so removing a confirmed player promotes the head of the waitlist
    on the next list().
    """

    def __init__(self, tenant_id: int, policy: str = 'waitlist'):
        if policy not in ADMISSION_POLICIES:
            raise ValueError(f"Unknown admission policy: {policy}")
        self.tenant_id = tenant_id
        self.policy = policy

    def _query(self):
        return Participant.query.filter_by(tenant_id=self.tenant_id)

    def _ordered(self):
        return self._query().order_by(Participant.confirmed_at.asc(), Participant.id.asc())

    def _lock_tenant(self) -> Tenant:
        """Serialize writers of this group on the tenant row."""
        tenant = Tenant.query.filter_by(id=self.tenant_id).with_for_update().first()
        if not tenant:
            raise NotFoundError("Group not found")
        return tenant

    def confirm(self, name: str, category: str, gender: str = None) -> Admission:
        """Admit a player, appending them after everyone already listed."""
        name = normalize_name(name)
        category = normalize_category(category)
        gender = normalize_gender(gender)
        name_key = name.lower()

        try:
            self._lock_tenant()

            if self.find_by_name(name):
                raise DuplicateNameError(name)

            if self.policy == 'reject' and self._query().count() >= CAPACITY:
                raise CapacityExceededError(CAPACITY)

            now = datetime.utcnow()
            participant = Participant(
                tenant_id=self.tenant_id,
                name=name,
                name_key=name_key,
                category=category,
                gender=gender,
                confirmed_at=now
            )
            db.session.add(participant)
            db.session.add(AttendanceLog(
                tenant_id=self.tenant_id,
                name=name,
                category=category,
                gender=gender,
                confirmed_at=now
            ))
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning("Concurrent duplicate confirmation for %r in tenant %s", name, self.tenant_id)
            raise DuplicateNameError(name)
        except (DuplicateNameError, CapacityExceededError, NotFoundError) as e:
            db.session.rollback()
            logger.warning("Rejected confirmation for %r in tenant %s: %s", name, self.tenant_id, e)
            raise
        except Exception:
            db.session.rollback()
            raise

        admission = Admission(participant=participant, position=self.position_of(participant))
        logger.info(
            "Confirmed %r in tenant %s at position %d%s",
            name, self.tenant_id, admission.position,
            " (waitlist)" if admission.is_waitlisted else ""
        )
        return admission

    def find_by_name(self, name: str) -> Optional[Participant]:
        """Case-insensitive lookup among confirmed and waitlisted players."""
        return self._query().filter_by(name_key=name.strip().lower()).first()

    def position_of(self, participant: Participant) -> int:
        """1-based rank of a participant in confirmation order."""
        return self._query().filter(
            or_(
                Participant.confirmed_at < participant.confirmed_at,
                and_(
                    Participant.confirmed_at == participant.confirmed_at,
                    Participant.id <= participant.id
                )
            )
        ).count()

    def list(self) -> Roster:
        participants = self._ordered().all()
        return Roster(confirmed=participants[:CAPACITY], waitlist=participants[CAPACITY:])

    def get(self, participant_id: int) -> Optional[Participant]:
        return self._query().filter_by(id=participant_id).first()

    def remove(self, participant_id: int) -> Participant:
        participant = self.get(participant_id)
        if not participant:
            raise NotFoundError(f"Participant {participant_id} not found")
        name = participant.name

        try:
            db.session.delete(participant)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Removed %r from tenant %s", name, self.tenant_id)
        return participant

    def clear(self) -> int:
        """Delete the whole session. The attendance log is kept."""
        try:
            deleted = self._query().delete(synchronize_session=False)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Cleared %d participants from tenant %s", deleted, self.tenant_id)
        return deleted

    def attendance_stats(self, limit: int = 10) -> List[Tuple[str, int]]:
        """Most frequent names in the attendance log, highest first."""
        name_key = func.lower(AttendanceLog.name)
        rows = db.session.query(
            func.max(AttendanceLog.name),
            func.count(AttendanceLog.id).label('total')
        ).filter(
            AttendanceLog.tenant_id == self.tenant_id
        ).group_by(name_key).order_by(
            func.count(AttendanceLog.id).desc(), name_key.asc()
        ).limit(limit).all()
        return [(name, total) for name, total in rows]
