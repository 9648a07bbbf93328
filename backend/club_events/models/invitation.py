"""Invitation table: keyed by invitation id plus the (string) event id."""
from sqlalchemy import Column, String, Text, BigInteger
from club_events.database import Base


class InvitationRow(Base):
    __tablename__ = "invitations"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    event_id = Column(String(32), primary_key=True, index=True)
    invitee_email = Column(String(320), nullable=False, index=True)
    invitee_name = Column(String(255), nullable=False, default="")
    sent_at = Column(String(40), nullable=False)
    status = Column(String(16), nullable=False, default="sent")
    delivered_at = Column(String(40), nullable=True)
    failed_at = Column(String(40), nullable=True)
    error_message = Column(Text, nullable=True)
