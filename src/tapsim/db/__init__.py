# -*- coding: utf-8 -*-
"""数据库模块"""
from .base import Base, engine, SessionLocal
from .models import KeyValue


def init_db(bind=None):
    """初始化数据库"""
    Base.metadata.create_all(bind=bind or engine)


__all__ = ["Base", "engine", "SessionLocal", "init_db", "KeyValue"]
