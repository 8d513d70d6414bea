from __future__ import annotations
from datetime import datetime, timedelta
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import Activity


def purge_expired_activities(db: Session, days: int) -> int:
	"""Delete activity rows older than ``days``; returns the number removed."""
	if days <= 0:
		return 0
	threshold = datetime.utcnow() - timedelta(days=days)
	res = db.execute(delete(Activity).where(Activity.created_at < threshold))
	db.commit()
	return res.rowcount or 0
