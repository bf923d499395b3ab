"""
持久化模块
"""
from .repository import TaskRepository

__all__ = ["TaskRepository"]
