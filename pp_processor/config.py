# ruff: noqa: I002
from enum import Enum
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReplaySourceType(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        json_schema_extra={
            "paragraphs_desc": {
                "回放存储设置": (
                    "在线回放由游戏服务器写入 `ONLINE_REPLAY_PATH`，最佳成绩回放由本处理器写入 `BEST_REPLAY_PATH`。\n\n"
                    '调试时可以设置 `REPLAY_SOURCE="remote"` 从远程镜像读取回放，写入与删除仍然只作用于本地目录。'
                ),
                "计算设置": (
                    "`REPLAY_ANALYZER` 为回放解析器的导入路径，格式为 `模块:类名`，批处理脚本启动时必须能够导入。"
                ),
            }
        },
    )

    # 官方数据库设置
    official_mysql_host: Annotated[
        str,
        Field(default="localhost", description="官方 MySQL 服务器地址"),
        "数据库设置",
    ]
    official_mysql_port: Annotated[
        int,
        Field(default=3306, description="官方 MySQL 服务器端口"),
        "数据库设置",
    ]
    official_mysql_database: Annotated[
        str,
        Field(default="osudroid", description="官方 MySQL 数据库名称"),
        "数据库设置",
    ]
    official_mysql_user: Annotated[
        str,
        Field(default="root", description="官方 MySQL 用户名"),
        "数据库设置",
    ]
    official_mysql_password: Annotated[
        str,
        Field(default="password", description="官方 MySQL 密码"),
        "数据库设置",
    ]
    processor_database_url: Annotated[
        str,
        Field(
            default="sqlite+aiosqlite:///./processor.db",
            description="处理器数据库连接 URL（进度表、谱面缓存、难度属性缓存、PP 档案）",
        ),
        "数据库设置",
    ]
    redis_url: Annotated[
        str,
        Field(default="redis://127.0.0.1:6379/0", description="Redis 连接 URL"),
        "数据库设置",
    ]

    @property
    def official_database_url(self) -> str:
        return (
            f"mysql+aiomysql://{self.official_mysql_user}:{self.official_mysql_password}"
            f"@{self.official_mysql_host}:{self.official_mysql_port}/{self.official_mysql_database}"
        )

    # 谱面设置
    beatmap_api_url: Annotated[
        str,
        Field(default="http://localhost:3017/api/beatmap", description="谱面处理服务地址"),
        "谱面设置",
    ]
    internal_api_key: Annotated[
        str,
        Field(default="", description="请求谱面处理服务时使用的内部密钥"),
        "谱面设置",
    ]
    beatmap_cache_expire_hours: Annotated[
        int,
        Field(default=24, description="谱面文件缓存过期时间（小时）"),
        "谱面设置",
    ]
    beatmap_recheck_minutes: Annotated[
        int,
        Field(default=30, description="未上架谱面重新检查状态的间隔（分钟）"),
        "谱面设置",
    ]

    # 回放存储设置
    online_replay_path: Annotated[
        str,
        Field(default="./replays/online", description="在线回放目录"),
        "回放存储设置",
    ]
    best_replay_path: Annotated[
        str,
        Field(default="./replays/best", description="最佳成绩回放目录"),
        "回放存储设置",
    ]
    replay_source: Annotated[
        ReplaySourceType,
        Field(default=ReplaySourceType.LOCAL, description="回放读取来源：local、remote"),
        "回放存储设置",
    ]
    remote_replay_url: Annotated[
        str,
        Field(default="https://osudroid.moe/api", description="远程回放镜像地址"),
        "回放存储设置",
    ]

    # 计算设置
    replay_analyzer: Annotated[
        str,
        Field(default="", description="回放解析器导入路径（模块:类名）"),
        "计算设置",
    ]
    calculator: Annotated[
        str,
        Field(default="rosu", description="PP 计算器模块名"),
        "计算设置",
    ]
    calculator_config: Annotated[
        dict[str, Any],
        Field(default={}, description="PP 计算器配置 (JSON 格式)"),
        "计算设置",
    ]
    calculation_workers: Annotated[
        int,
        Field(default=0, description="计算线程池大小，0 表示使用 CPU 核心数"),
        "计算设置",
    ]

    # 日志设置
    log_level: Annotated[
        str,
        Field(default="INFO", description="日志级别"),
        "日志设置",
    ]
    debug: Annotated[
        bool,
        Field(default=False, description="是否启用调试模式"),
        "日志设置",
    ]

    @field_validator("remote_replay_url", "beatmap_api_url", mode="after")
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("calculation_workers", mode="after")
    def validate_calculation_workers(cls, v: int) -> int:
        if v < 0:
            raise ValueError("calculation_workers must not be negative")
        return v


settings = Settings()  # pyright: ignore[reportCallIssue]
