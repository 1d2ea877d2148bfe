import logging

from sqlalchemy.orm import Session, selectinload

from scheduler.core.errors import NotFoundError, database_read
from scheduler.models.doctor import Doctor
from scheduler.models.user import User
from scheduler.models.working_hour import WorkingHour
from scheduler.schemas.availability import WorkingHourRule

logger = logging.getLogger(__name__)


class DoctorStore:
    """Reads doctors and maintains their working-hour rules."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_doctor(self, doctor_id: str) -> Doctor | None:
        with database_read('look up the doctor'):
            return (
                self.db.query(Doctor)
                .options(selectinload(Doctor.working_hours))
                .filter(Doctor.id == doctor_id, Doctor.is_deleted.is_(False))
                .first()
            )

    def get_doctors_by_ids(self, doctor_ids: set[str]) -> dict[str, Doctor]:
        if not doctor_ids:
            return {}
        with database_read('look up doctors'):
            doctors = self.db.query(Doctor).filter(
                Doctor.id.in_(doctor_ids),
                Doctor.is_deleted.is_(False),
            ).all()
        return {doctor.id: doctor for doctor in doctors}

    def get_users_by_ids(self, user_ids: set[str]) -> dict[str, User]:
        if not user_ids:
            return {}
        with database_read('look up patients'):
            users = self.db.query(User).filter(
                User.id.in_(user_ids),
                User.is_deleted.is_(False),
            ).all()
        return {user.id: user for user in users}

    def merge_working_hours(self, doctor_id: str, rules: list[WorkingHourRule]) -> tuple[list[WorkingHourRule], int]:
        """Append rules not already present; returns the full sorted set and the number added."""
        doctor = self.get_doctor(doctor_id)
        if doctor is None:
            raise NotFoundError('Doctor not found.')

        known = {(wh.day_of_week, wh.hour, wh.minute) for wh in doctor.working_hours}
        added = 0
        for rule in rules:
            key = (rule.day_of_week, rule.hour, rule.minute)
            if key in known:
                continue
            doctor.working_hours.append(WorkingHour(day_of_week=rule.day_of_week, hour=rule.hour, minute=rule.minute))
            known.add(key)
            added += 1

        self.db.commit()
        self.db.refresh(doctor)

        logger.info('Merged %s new working hours for doctor %s', added, doctor_id)
        return working_hour_rules(doctor), added


def working_hour_rules(doctor: Doctor) -> list[WorkingHourRule]:
    rules = [WorkingHourRule.model_validate(wh) for wh in doctor.working_hours]
    return sorted(rules, key=lambda rule: (rule.day_of_week, rule.hour, rule.minute))
