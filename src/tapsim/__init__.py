"""tapsim: 积木任务模拟器后端"""

__version__ = "1.0.0"
