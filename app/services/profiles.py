"""Creates the role-specific profile row attached to a new user."""
from typing import Any

from sqlalchemy.orm import Session

from app.errors import ValidationError
from app.models.profile import CompanyProfile, InfluencerProfile
from app.models.user import User, UserRole, UserStatus

# Required field per role, as (key in role_fields, label used in error messages)
REQUIRED_ROLE_FIELD = {
    UserRole.COMPANY: ("company_name", "Company name"),
    UserRole.INFLUENCER: ("display_name", "Display name"),
}


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def validate_role_fields(role: UserRole, role_fields: dict[str, Any] | None) -> dict[str, str | None]:
    """Return stripped role fields, raising ValidationError if the role's required field is missing."""
    if role not in REQUIRED_ROLE_FIELD:
        raise ValidationError("Invalid role. Must be COMPANY or INFLUENCER")
    fields = {k: _clean(v) for k, v in (role_fields or {}).items()}
    key, label = REQUIRED_ROLE_FIELD[role]
    if not fields.get(key):
        raise ValidationError(f"{label} is required for {role.value} role")
    return fields


def create_profile(db: Session, user: User, role_fields: dict[str, Any] | None) -> CompanyProfile | InfluencerProfile:
    """Insert the profile matching user.role. Must run in the same transaction that inserted the user."""
    fields = validate_role_fields(user.role, role_fields)
    if user.role == UserRole.COMPANY:
        profile = CompanyProfile(
            user_id=user.id,
            company_name=fields["company_name"],
            legal_number=fields.get("legal_number"),
            representative_name=fields.get("representative_name"),
            industry=fields.get("industry"),
            status=UserStatus.PROVISIONAL,
            is_verified=False,
        )
    else:
        profile = InfluencerProfile(
            user_id=user.id,
            display_name=fields["display_name"],
            is_registered=False,
        )
    db.add(profile)
    db.flush()
    return profile


def get_profile(db: Session, user: User) -> CompanyProfile | InfluencerProfile | None:
    if user.role == UserRole.COMPANY:
        return db.query(CompanyProfile).filter(CompanyProfile.user_id == user.id).first()
    if user.role == UserRole.INFLUENCER:
        return db.query(InfluencerProfile).filter(InfluencerProfile.user_id == user.id).first()
    return None
