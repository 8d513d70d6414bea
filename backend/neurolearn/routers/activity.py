from __future__ import annotations
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Activity


router = APIRouter(prefix="/activities", tags=["activities"])


class ActivityCreate(BaseModel):
	model_config = ConfigDict(str_strip_whitespace=True)

	user_id: str = Field(min_length=1, max_length=128)
	section: str = Field(min_length=1, max_length=64)
	outcome: str = Field(min_length=1, max_length=512)


class ActivityOut(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	user_id: str
	section: str
	outcome: str
	created_at: datetime


@router.post("", response_model=ActivityOut, status_code=201)
def log_activity(req: ActivityCreate, db: Session = Depends(get_db)):
	row = Activity(user_id=req.user_id, section=req.section, outcome=req.outcome)
	db.add(row)
	db.commit()
	db.refresh(row)
	return row


@router.get("", response_model=List[ActivityOut])
def list_activities(
	user_id: str = Query(..., min_length=1),
	limit: int = Query(default=100, ge=1, le=1000),
	db: Session = Depends(get_db),
):
	return (
		db.query(Activity)
		.filter(Activity.user_id == user_id)
		.order_by(Activity.created_at.desc(), Activity.id.desc())
		.limit(limit)
		.all()
	)
