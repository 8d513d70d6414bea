from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer
from .db import Base


class Activity(Base):
	__tablename__ = "activities"
	id = Column(Integer, primary_key=True, autoincrement=True)
	# Opaque client-side user id; there is no server-side account table
	user_id = Column(String(128), index=True, nullable=False)
	section = Column(String(64), nullable=False)
	outcome = Column(String(512), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
