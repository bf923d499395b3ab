"""
主程序入口
"""
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .core.config import settings
from .core.errors import PersistenceFailure
from .core.logger import logger, setup_logger
from .db import init_db
from .modules.web import register_routers
from .modules.web.deps import Runtime, build_runtime


def create_app(runtime: Optional[Runtime] = None, *, init_storage: bool = True) -> FastAPI:
    """创建 FastAPI 应用；runtime 为空时使用默认数据库构建"""
    app = FastAPI(
        title="任务积木模拟器",
        description="积木任务编辑与模拟回放",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:9000",
            "http://127.0.0.1:9000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.runtime = runtime or build_runtime()
    register_routers(app)

    @app.on_event("startup")
    async def startup():
        """应用启动事件"""
        setup_logger()
        logger.info("应用启动中...")
        if init_storage:
            init_db()
            logger.info("数据库初始化完成")
        app.state.loaded = False
        try:
            app.state.runtime.state.load()
            app.state.loaded = True
        except PersistenceFailure as e:
            # 读取失败时以空集合启动，不覆盖已保存的数据
            logger.error(f"加载任务失败，以空任务集合启动: {e}")
        logger.info(f"应用启动完成，监听 {settings.api_host}:{settings.api_port}")

    @app.on_event("shutdown")
    async def shutdown():
        """应用关闭事件"""
        logger.info("应用关闭中...")
        runtime_ = app.state.runtime
        await runtime_.executor.shutdown()
        if getattr(app.state, "loaded", False):
            try:
                runtime_.state.save()
            except PersistenceFailure as e:
                logger.error(f"退出时保存任务失败: {e}")
        logger.info("应用关闭完成")

    @app.get("/")
    async def root():
        """根路径"""
        return {"message": "任务积木模拟器 API", "version": __version__}

    @app.get("/health")
    async def health():
        """健康检查"""
        return {"status": "healthy"}

    return app


def run():
    """命令行启动 uvicorn"""
    import uvicorn

    uvicorn.run(create_app(), host=settings.api_host, port=settings.api_port, log_level="info")


if __name__ == "__main__":
    run()
