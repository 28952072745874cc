# -*- coding: utf-8 -*-
"""
PluginKit 命令行接口
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from .config import load_settings
from .core.bootstrap import build_registry
from .core.plugin_registry import PluginRegistry
from .exceptions import PluginKitException
from .logger import setup_logging


def _print_status(status: List[Dict[str, Any]]) -> None:
    """格式化并打印插件状态表。"""
    print("\n--- 插件状态 ---")
    if not status:
        print("没有发现插件")
        return

    print(f"{'插件':<24}{'版本':<18}{'状态':<8}{'已加载':<8}激活时间")
    for item in status:
        created = item["created"].strftime("%Y-%m-%d %H:%M:%S") if item["created"] else "-"
        print(
            f"{item['name']:<24}"
            f"{item['version'] or '-':<18}"
            f"{'激活' if item['active'] else '未激活':<8}"
            f"{'是' if item['loaded'] else '否':<8}"
            f"{created}"
        )
        if item["error"]:
            print(f"    错误: {item['error']}")

    print("-" * 22)


def _cmd_list(registry: PluginRegistry, args: argparse.Namespace) -> None:
    for name in registry.list_available():
        if args.quiet:
            print(name)
        else:
            marker = "*" if registry.is_active(name) else " "
            print(f"[{marker}] {name}")


def _cmd_status(registry: PluginRegistry, args: argparse.Namespace) -> None:
    status = registry.get_status()
    if args.quiet:
        for item in status:
            print(f"{item['name']} {'active' if item['active'] else 'inactive'}")
    else:
        _print_status(status)


def _cmd_activate(registry: PluginRegistry, args: argparse.Namespace) -> None:
    plugin = registry.activate(args.name)
    if not args.quiet:
        print(f"插件已激活: {plugin.name} (ID: {plugin.plugin_id})")


def _cmd_deactivate(registry: PluginRegistry, args: argparse.Namespace) -> None:
    registry.deactivate(args.name)
    if not args.quiet:
        print(f"插件已停用: {registry.clean_plugin_name(args.name)}")


def build_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog="pluginkit",
        description="PluginKit - 插件注册表管理工具",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--config", "-c", help="YAML 或 JSON 配置文件路径")
    parser.add_argument("--plugin-path", "-p", help="插件根目录，覆盖配置文件")
    parser.add_argument("--db-url", "-d", help="数据库URL，覆盖配置文件")
    parser.add_argument("--log-level", help="日志级别，覆盖配置文件")
    parser.add_argument("--quiet", "-q", action="store_true", help="静默模式，只输出必要信息")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    list_parser = subparsers.add_parser("list", help="列出插件目录中的候选插件")
    list_parser.set_defaults(handler=_cmd_list)

    status_parser = subparsers.add_parser("status", help="显示插件状态")
    status_parser.set_defaults(handler=_cmd_status)

    activate_parser = subparsers.add_parser("activate", help="激活插件")
    activate_parser.add_argument("name", help="插件名")
    activate_parser.set_defaults(handler=_cmd_activate)

    deactivate_parser = subparsers.add_parser("deactivate", help="停用插件")
    deactivate_parser.add_argument("name", help="插件名")
    deactivate_parser.set_defaults(handler=_cmd_deactivate)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """命令行主入口"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(
            args.config,
            plugin_path=args.plugin_path,
            database_url=args.db_url,
            log_level=args.log_level,
        )
        setup_logging("WARNING" if args.quiet else settings.log_level)

        registry = build_registry(settings)
        args.handler(registry, args)
        sys.exit(0)

    except KeyboardInterrupt:
        print("\n用户中断", file=sys.stderr)
        sys.exit(1)
    except (PluginKitException, ValueError) as e:
        print(f"运行失败: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
