from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def _dump(data: Optional[Dict[str, Any]]) -> str:
    return json.dumps(data or {}, ensure_ascii=False, default=str)


def _load(raw: Optional[str]) -> Dict[str, Any]:
    try:
        value = json.loads(raw or "{}")
    except (TypeError, ValueError):
        return {}
    return value if isinstance(value, dict) else {}


class AnswerModel(Base):
    __tablename__ = "answers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    query_id: Mapped[str] = mapped_column(Text, index=True)
    content: Mapped[str] = mapped_column(Text, default="")
    provider: Mapped[str] = mapped_column(Text, default="")
    provider_metadata_json: Mapped[str] = mapped_column(Text, default="{}")

    relevance_score: Mapped[float] = mapped_column(Float, default=0.0)
    accuracy_score: Mapped[float] = mapped_column(Float, default=0.0)
    completeness_score: Mapped[float] = mapped_column(Float, default=0.0)
    overall_score: Mapped[float] = mapped_column(Float, default=0.0)

    is_validated: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[str] = mapped_column(String(16), default="pending", index=True)

    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    metadata_entries = relationship(
        "AnswerMetadataModel", back_populates="answer", cascade="all, delete-orphan"
    )
    validations = relationship(
        "AnswerValidationModel", back_populates="answer", cascade="all, delete-orphan"
    )
    scores = relationship("AnswerScoreModel", back_populates="answer", cascade="all, delete-orphan")

    def set_provider_metadata(self, data: Optional[Dict[str, Any]]) -> None:
        self.provider_metadata_json = _dump(data)

    def get_provider_metadata(self) -> Dict[str, Any]:
        return _load(self.provider_metadata_json)


class AnswerMetadataModel(Base):
    """Citations, inline validation reasons and other per-answer facts."""

    __tablename__ = "answer_metadata"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    answer_id: Mapped[str] = mapped_column(String(36), ForeignKey("answers.id"), index=True)
    key: Mapped[str] = mapped_column(Text)
    value_type: Mapped[str] = mapped_column(String(16), default="json")
    text_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    numeric_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    json_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    answer = relationship("AnswerModel", back_populates="metadata_entries")

    def set_json_value(self, data: Optional[Dict[str, Any]]) -> None:
        self.json_value = None if data is None else _dump(data)

    def get_json_value(self) -> Optional[Dict[str, Any]]:
        return None if self.json_value is None else _load(self.json_value)


class AnswerValidationModel(Base):
    __tablename__ = "answer_validations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    answer_id: Mapped[str] = mapped_column(String(36), ForeignKey("answers.id"), index=True)
    validation_type: Mapped[str] = mapped_column(String(32))
    status: Mapped[str] = mapped_column(String(16))
    message: Mapped[str] = mapped_column(Text, default="")
    confidence: Mapped[float] = mapped_column(Float, default=1.0)
    details_json: Mapped[str] = mapped_column(Text, default="{}")
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    answer = relationship("AnswerModel", back_populates="validations")

    def set_details(self, data: Optional[Dict[str, Any]]) -> None:
        self.details_json = _dump(data)

    def get_details(self) -> Dict[str, Any]:
        return _load(self.details_json)


class AnswerScoreModel(Base):
    __tablename__ = "answer_scores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    answer_id: Mapped[str] = mapped_column(String(36), ForeignKey("answers.id"), index=True)
    metric_type: Mapped[str] = mapped_column(String(32))
    score: Mapped[float] = mapped_column(Float, default=0.0)
    weight: Mapped[float] = mapped_column(Float, default=0.0)
    explanation: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    answer = relationship("AnswerModel", back_populates="scores")
