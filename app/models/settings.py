from sqlalchemy import Boolean, Column, Integer, String, Text
from app.database import Base


class SettingsRecord(Base):
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    logo = Column(Text, nullable=True)
    admin_pin = Column(String, nullable=False)
    accent_color = Column(String, nullable=False)
    theme = Column(String, nullable=False, default="system")
    hr_score_weight = Column(Integer, nullable=True, default=30)
    require_hr_for_ranking = Column(Boolean, nullable=True, default=False)
