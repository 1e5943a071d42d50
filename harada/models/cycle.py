from sqlalchemy import (
    CheckConstraint, Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey, Index, func, text
)
from sqlalchemy.orm import relationship
from harada.database import Base, utcnow

class WeeklyCycle(Base):
    __tablename__ = "cycles"

    id = Column(Integer, primary_key=True, index=True)
    chart_id = Column(Integer, ForeignKey("charts.id", ondelete="CASCADE"), nullable=False)
    week_start_date = Column(Date, nullable=False)  # Monday
    week_end_date = Column(Date, nullable=False)    # Sunday
    status = Column(String, nullable=False, default="planned")  # planned, in_progress, completed
    start_journal = Column(Text, nullable=False, default="")
    end_review = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now())

    # One open cycle per chart and week; completed ones stay as history.
    __table_args__ = (
        Index(
            "uq_cycle_open_week",
            "chart_id",
            "week_start_date",
            unique=True,
            postgresql_where=text("status != 'completed'"),
            sqlite_where=text("status != 'completed'"),
        ),
    )


class WeeklyAction(Base):
    __tablename__ = "weekly_actions"

    id = Column(Integer, primary_key=True, index=True)
    cycle_id = Column(Integer, ForeignKey("cycles.id", ondelete="CASCADE"), nullable=False, index=True)
    cell_id = Column(Integer, ForeignKey("cells.id", ondelete="SET NULL"), nullable=True)  # null once the cell is deleted
    is_selected = Column(Boolean, nullable=False, default=True)
    completion_status = Column(String, nullable=False, default="not_started")
    reflection_notes = Column(Text, nullable=False, default="")
    score = Column(Integer, nullable=True)  # 0–5
    completed_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now())

    cell = relationship("ChartCell", lazy="joined")

    __table_args__ = (
        CheckConstraint("score IS NULL OR (score >= 0 AND score <= 5)", name="ck_weekly_action_score"),
    )
