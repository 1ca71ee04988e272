"""CLI命令行接口模块"""

import sys
from typing import List, Optional

import typer
from dotenv import find_dotenv, load_dotenv
from loguru import logger

from dockmirror.constants import DEFAULT_REGISTRY, DEFAULT_TAG_PATTERN, ENV_VARS
from dockmirror.managers.config_manager import ConfigManager, env_overrides
from dockmirror.managers.image.base import MirrorStatus
from dockmirror.managers.mirror_manager import MirrorManager
from dockmirror.utils import configure_logging

# 创建CLI应用
app = typer.Typer(
    help="把 Docker Hub 上的镜像同步到其他仓库",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": []},
)


def show_help(ctx: typer.Context, value: bool) -> None:
    """显示帮助以及当前设置的环境变量，然后退出"""
    if not value or ctx.resilient_parsing:
        return
    typer.echo(ctx.get_help())
    typer.echo("\n环境变量:")
    for key, env_value in env_overrides().items():
        typer.echo(f"    {key}={env_value}")
    raise typer.Exit()


@app.command()
def mirror(
    images: Optional[List[str]] = typer.Argument(None, help="要同步的镜像，例如 alpine 或 efrecon/reg-tags"),
    registry: str = typer.Option(DEFAULT_REGISTRY, "-r", "--registry", envvar=ENV_VARS["registry"], help="目标仓库路径"),
    tags: str = typer.Option(DEFAULT_TAG_PATTERN, "-t", "--tags", envvar=ENV_VARS["tags"], help="要同步的标签的正则表达式"),
    minver: Optional[str] = typer.Option(None, "-m", "--minver", envvar=ENV_VARS["minver"], help="最小版本，更早的版本不会同步"),
    version_range: Optional[str] = typer.Option(None, "-g", "--range", envvar=ENV_VARS["range"], help="版本区间 min:max，包含min不包含max"),
    force: bool = typer.Option(False, "-f", "--force", envvar=ENV_VARS["force"], help="目标镜像已存在时也重新同步"),
    dry_run: bool = typer.Option(False, "-n", "--dry-run", envvar=ENV_VARS["dryrun"], help="不执行操作，只输出将要执行的操作"),
    verbose: int = typer.Option(0, "-v", "--verbose", count=True, envvar=ENV_VARS["verbose"], help="输出详细日志，否则只输出错误和警告"),
    keep_going: bool = typer.Option(False, "-k", "--keep-going", envvar=ENV_VARS["keepgoing"], help="任务失败后继续同步其他标签"),
    jobs: int = typer.Option(1, "-j", "--jobs", envvar=ENV_VARS["jobs"], help="并发同步的任务数"),
    help_flag: bool = typer.Option(False, "-h", "--help", is_eager=True, expose_value=False, callback=show_help, help="显示帮助并退出"),
):
    """同步镜像，未指定标签时按正则表达式和版本区间筛选标签"""
    configure_logging(verbose)
    if not images:
        logger.error("错误：至少需要指定一个镜像")
        sys.exit(1)

    try:
        config = ConfigManager(
            registry=registry,
            tags=tags,
            minver=minver,
            version_range=version_range,
            force=force,
            dry_run=dry_run,
            verbose=verbose,
            keep_going=keep_going,
            jobs=jobs,
        ).build_config()
        results = MirrorManager(config).mirror(images)
    except Exception as e:
        logger.error(f"错误：{str(e)}")
        sys.exit(1)

    failed = [result for result in results if result.status == MirrorStatus.FAILED]
    if failed:
        logger.error(f"{len(failed)} 个镜像同步失败")
        sys.exit(1)


def main():
    """主入口函数"""
    # .env 中的变量不覆盖已设置的环境变量
    load_dotenv(find_dotenv(usecwd=True))
    app()


if __name__ == "__main__":
    main()
