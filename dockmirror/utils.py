"""工具函数模块"""

import shlex
import subprocess
import sys
from typing import Any, Dict, List, Sequence, Tuple, Union

from loguru import logger

from .constants import LEVEL_TAGS, PROG_NAME


def run_command(command: Union[str, Sequence[str]], check: bool = True) -> Tuple[int, str, str]:
    """
    运行外部命令并返回结果

    Args:
        command: 要运行的命令，字符串会按shell规则拆分
        check: 是否检查返回码

    Returns:
        (返回码, 标准输出, 标准错误)

    Raises:
        subprocess.CalledProcessError: check为True且命令失败时抛出
    """
    args: List[str] = shlex.split(command) if isinstance(command, str) else list(command)
    logger.debug(f"执行命令: {shlex.join(args)}")

    process = subprocess.Popen(
        args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, universal_newlines=True
    )

    # 获取输出
    stdout, stderr = process.communicate()
    return_code = process.returncode

    # 检查返回码
    if check and return_code != 0:
        logger.debug(f"命令执行失败: {shlex.join(args)}")
        logger.debug(f"错误输出: {stderr}")
        raise subprocess.CalledProcessError(return_code, args, stdout, stderr)

    return return_code, stdout, stderr


def _format_record(record: Dict[str, Any]) -> str:
    record["extra"]["tag"] = LEVEL_TAGS.get(record["level"].name, "LOG")
    return f"[{PROG_NAME}] [{{extra[tag]}}] [{{time:YYYYMMDD-HHmmss}}] {{message}}\n{{exception}}"


def log_level(verbose: int) -> str:
    """根据详细程度计算日志级别：0只显示警告和错误，1显示信息，2及以上显示调试"""
    if verbose >= 2:
        return "DEBUG"
    if verbose == 1:
        return "INFO"
    return "WARNING"


def configure_logging(verbose: int = 0) -> None:
    """
    配置日志输出到标准错误

    Args:
        verbose: 详细程度
    """
    logger.remove()
    logger.add(
        sink=sys.stderr,
        format=_format_record,
        colorize=False,
        level=log_level(verbose),
    )
