from sqlalchemy import Column, DateTime, Index, Integer, String

from app.database import Base


class EmailOtpEntry(Base):
    __tablename__ = "email_otps"

    email = Column(String(255), primary_key=True)
    otp_hash = Column(String(128), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_email_otps_expires_at", "expires_at"),)
