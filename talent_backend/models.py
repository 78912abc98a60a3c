from sqlalchemy import Column, DateTime, Integer, JSON, String, Text

from talent_backend.database import Base
from talent_backend.utils.timezone_utils import utc_now


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_id = Column(String(255), unique=True, index=True, nullable=False)

    role = Column(String(50), nullable=False)  # talent, manager, producer, admin
    talent_type = Column(String(50), nullable=True)  # actor, musician, voice_artist, model
    display_name = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    availability_status = Column(String(50), default="available")

    # namespace -> field name -> value
    questionnaire_responses = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


# Columns a caller may never write directly
MANAGED_COLUMNS = frozenset({"id", "subject_id", "created_at", "updated_at"})

# Flat, writable profile columns
PROFILE_COLUMNS = frozenset(
    column.name
    for column in UserProfile.__table__.columns
    if column.name not in MANAGED_COLUMNS and column.name != "questionnaire_responses"
)

# Flat columns that may not be cleared to NULL
REQUIRED_COLUMNS = frozenset(
    column.name
    for column in UserProfile.__table__.columns
    if column.name in PROFILE_COLUMNS and not column.nullable
)
