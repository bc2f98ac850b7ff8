import inspect
import logging
from sys import stdout
from types import FunctionType
from typing import TYPE_CHECKING

from pp_processor.config import settings

import loguru

if TYPE_CHECKING:
    from loguru import Logger

logger: "Logger" = loguru.logger


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists.
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message.
        frame, depth = inspect.currentframe(), 0
        while frame:
            filename = frame.f_code.co_filename
            is_logging = filename == logging.__file__
            is_frozen = "importlib" in filename and "_bootstrap" in filename
            if depth > 0 and not (is_logging or is_frozen):
                break
            frame = frame.f_back
            depth += 1

        logger.bind(system=record.name).opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def get_caller_class_name(module_prefix: str = "", just_last_part: bool = True) -> str | None:
    stack = inspect.stack()
    for frame_info in stack[2:]:
        module = frame_info.frame.f_globals.get("__name__", "")
        if module_prefix and not module.startswith(module_prefix):
            continue

        local_vars = frame_info.frame.f_locals
        # 实例方法
        if "self" in local_vars:
            return local_vars["self"].__class__.__name__
        # 类方法
        if "cls" in local_vars:
            return local_vars["cls"].__name__

        # 静态方法 / 普通函数 -> 尝试通过函数名匹配类
        func_name = frame_info.function
        for obj in frame_info.frame.f_globals.values():
            if isinstance(obj, type):
                attr = getattr(obj, func_name, None)
                if isinstance(attr, (staticmethod, classmethod, FunctionType)):
                    return obj.__name__

        # 如果没找到类，返回模块名
        if just_last_part:
            return module.rsplit(".", 1)[-1]
        return module
    return None


def service_logger(name: str) -> "Logger":
    return logger.bind(service=name)


def fetcher_logger(name: str) -> "Logger":
    return logger.bind(fetcher=name)


def task_logger(name: str) -> "Logger":
    return logger.bind(task=name)


def system_logger(name: str) -> "Logger":
    return logger.bind(system=name)


def log(name: str) -> "Logger":
    return logger.bind(real_name=name)


def dynamic_format(record):
    name = ""

    service = record["extra"].get("service")
    if not service:
        service = get_caller_class_name("pp_processor.service")
    if service:
        name = f"<blue>{service}</blue>"

    fetcher = record["extra"].get("fetcher")
    if not fetcher:
        fetcher = get_caller_class_name("pp_processor.fetcher")
    if fetcher:
        name = f"<magenta>{fetcher}</magenta>"

    task = record["extra"].get("task")
    if task:
        name = f"<fg #FFD700>{task}</fg #FFD700>"

    system = record["extra"].get("system")
    if system:
        name = f"<red>{system}</red>"

    if name == "":
        real_name = record["extra"].get("real_name", "") or record["name"]
        name = f"<fg #FFC1C1>{real_name}</fg #FFC1C1>"

    format = f"<green>{{time:YYYY-MM-DD HH:mm:ss}}</green> [<level>{{level}}</level>] | {name} | {{message}}\n"
    if record["exception"]:
        format += "{exception}\n"
    return format


logger.remove()
logger.add(
    stdout,
    colorize=True,
    format=dynamic_format,
    level=settings.log_level,
    diagnose=settings.debug,
)
logger.add(
    "logs/{time:YYYY-MM-DD}.log",
    rotation="00:00",
    retention="30 days",
    colorize=False,
    format=dynamic_format,
    level=settings.log_level,
    diagnose=settings.debug,
    encoding="utf8",
)
logging.basicConfig(handlers=[InterceptHandler()], level=settings.log_level, force=True)

logging.getLogger("httpx").setLevel("WARNING")
logging.getLogger("aiomysql").setLevel("WARNING")
logging.getLogger("sqlalchemy").setLevel("WARNING")
