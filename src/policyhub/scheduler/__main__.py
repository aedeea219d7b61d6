"""CLI 入口模块 -- python -m policyhub.scheduler <command>

支持的命令：
  run-once  执行一次升级/提醒运行（供外部 cron 触发），success 为 false 时退出码 1
"""

import asyncio
import sys

from policyhub.core.config import get_db_path
from policyhub.core.log_config import setup_logging

from .config import load_scheduler_config


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m policyhub.scheduler <command>")
        print("命令:")
        print("  run-once  执行一次升级/提醒运行")
        sys.exit(1)

    command = sys.argv[1]

    if command == "run-once":
        setup_logging(stream=sys.stderr)
        success = asyncio.run(run_once())
        sys.exit(0 if success else 1)
    else:
        print(f"未知命令: {command}")
        print("可用命令: run-once")
        sys.exit(1)


async def run_once() -> bool:
    """构建调度栈并执行一次运行，打印结果 JSON"""
    from policyhub.core.store import create_store_group
    from policyhub.notify import load_notify_config

    from .factory import build_escalation_stack

    db_path = get_db_path()
    store_group = await create_store_group(db_path)

    try:
        stack = build_escalation_stack(
            store_group,
            load_scheduler_config(),
            load_notify_config(),
        )
        result = await stack.coordinator.run_once()
        print(result.model_dump_json(indent=2))
        return result.success
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
