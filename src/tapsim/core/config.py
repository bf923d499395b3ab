"""
核心配置模块
"""
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """系统配置"""

    # 数据库
    database_url: str = Field(default="sqlite:///./tapsim.db", env="DATABASE_URL")
    storage_key: str = Field(default="tasks", env="STORAGE_KEY")

    # 虚拟设备（逻辑坐标系）
    device_width: int = Field(default=320, env="DEVICE_WIDTH")
    device_height: int = Field(default=720, env="DEVICE_HEIGHT")

    # 回放
    tap_duration_ms: int = Field(default=800, env="TAP_DURATION_MS")

    # Web服务
    api_host: str = Field(default="127.0.0.1", env="API_HOST")
    api_port: int = Field(default=9001, env="API_PORT")

    # 日志
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_path: str = Field(default="./logs", env="LOG_PATH")
    log_retention_days: int = Field(default=3, env="LOG_RETENTION_DAYS")
    log_console_enabled: bool = Field(default=True, env="LOG_CONSOLE_ENABLED")
    log_file_enabled: bool = Field(default=True, env="LOG_FILE_ENABLED")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def tap_duration(self) -> float:
        """单次点击反馈时长（秒）"""
        return self.tap_duration_ms / 1000.0


# 全局配置实例
settings = Settings()
