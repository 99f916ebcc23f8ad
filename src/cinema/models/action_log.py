"""
ActionLog model - audit trail of user and admin actions
"""
from sqlalchemy import Column, DateTime, Integer, String, Text

from cinema.core import clock
from cinema.core.database import Base


class ActionLog(Base):
    __tablename__ = "action_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    action = Column(String(50), nullable=False)  # Create, Read, Update, Delete, Confirm, Cancel
    entity_type = Column(String(50), nullable=False)  # Movie, Showtime, Hold, Ticket, User
    entity_id = Column(Integer, nullable=True)
    details = Column(Text, nullable=True)
    ip_address = Column(String(64), nullable=True)
    timestamp = Column(DateTime, default=clock.utcnow, nullable=False, index=True)

    def __repr__(self):
        return (f"<ActionLog(id={self.id}, user='{self.user_id}', action='{self.action}', "
                f"entity='{self.entity_type}:{self.entity_id}')>")
