# scamguard/models.py
from sqlalchemy import Column, Integer, String, DateTime, Text, Float, Boolean
from sqlalchemy.sql import func

from scamguard.db import Base


class ScamDetectionLog(Base):
    __tablename__ = "scam_detection_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False)
    message = Column(Text, nullable=False)
    scan_result = Column(Text, nullable=True)
    label = Column(String(16), nullable=False, default="unknown")
    confidence = Column(Float, nullable=False, default=0.0)
    ip_address = Column(String(64), nullable=False)
    is_flagged = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ChatHistory(Base):
    __tablename__ = "chat_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    role = Column(String(20), nullable=False)  # user | assistant
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class _GenerationLogColumns:
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False)
    ip_address = Column(String(64), nullable=False)
    input_text = Column(Text, nullable=False)
    output_text = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CodeExtractionLog(_GenerationLogColumns, Base):
    __tablename__ = "code_extraction_logs"


class TextToCodeLog(_GenerationLogColumns, Base):
    __tablename__ = "text_to_code_logs"


class SummarizationLog(_GenerationLogColumns, Base):
    __tablename__ = "summarization_logs"


COLLECTIONS = {
    model.__tablename__: model
    for model in (ScamDetectionLog, ChatHistory, CodeExtractionLog, TextToCodeLog, SummarizationLog)
}
