"""
数据库模型定义
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from .base import Base


class KeyValue(Base):
    """键值存储表（任务集合以 JSON 文本整体保存在一个键下）"""
    __tablename__ = "kv_store"

    key = Column(String(100), primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
