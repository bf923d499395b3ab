"""
Web API模块
"""
from fastapi import FastAPI
from .routers import executor, simulator, tasks


def register_routers(app: FastAPI):
    """注册所有路由"""
    app.include_router(tasks.router)
    app.include_router(simulator.router)
    app.include_router(executor.router)


__all__ = ["register_routers"]
