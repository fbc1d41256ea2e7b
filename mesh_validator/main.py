#!/usr/bin/env python3
"""
Istio配置校验系统 - 主入口

统一的命令行界面，支持一次性校验和Web服务
"""

import os
import sys
import json
import argparse
import logging
from typing import List, Optional

from mesh_validator.config import GlobalConfig, get_config, set_config, load_config_from_file
from mesh_validator.core.loader import load_snapshot
from mesh_validator.core.validation_service import IstioValidationsService
from mesh_validator.models.data_models import IstioValidations
from mesh_validator.utils.file_utils import write_json_file


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """配置日志"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        handlers=handlers
    )


def run_validation(config: GlobalConfig, namespace: Optional[str], output: Optional[str] = None) -> IstioValidations:
    """加载配置快照并执行一次校验，结果写入文件或打印到标准输出"""
    logger = logging.getLogger(__name__)
    logger.info("启动校验模式")

    context = load_snapshot(config.config_dir, namespace=namespace, root_namespace=config.root_namespace)
    validations = IstioValidationsService(config=config).get_validations(context)

    result = {
        "namespace": namespace,
        "summary": validations.summary(),
        "validations": validations.to_dict()
    }
    if output:
        output_dir = os.path.dirname(output)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        write_json_file(output, result)
        logger.info(f"校验结果已保存到: {output}")
    else:
        print(json.dumps(result, indent=2, ensure_ascii=False))

    summary = result["summary"]
    logger.info(f"\n{'='*80}")
    logger.info(f"对象数: {summary['objectCount']}  无效: {summary['invalidObjects']}")
    logger.info(f"错误: {summary['errors']}  警告: {summary['warnings']}  提示: {summary['infos']}")
    logger.info(f"{'='*80}\n")

    return validations


def start_web_server(config: GlobalConfig, port: Optional[int] = None):
    """启动Web服务器"""
    from mesh_validator.web.server import WebServer

    logger = logging.getLogger(__name__)
    logger.info(f"启动Web服务器: http://localhost:{port or config.web_port}")
    WebServer(port=port, config=config).run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Istio配置校验系统",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  # 校验所有命名空间
  python -m mesh_validator.main --mode validate --config-dir ./istio_config

  # 只校验一个命名空间，结果写入文件
  python -m mesh_validator.main --mode validate --config-dir ./istio_config --namespace bookinfo --output out.json

  # 启动Web服务
  python -m mesh_validator.main --mode web --config-dir ./istio_config --port 8080
        """
    )

    parser.add_argument(
        "--mode",
        choices=["validate", "web"],
        default="validate",
        help="运行模式: validate(一次性校验), web(Web服务器)"
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        help="配置快照目录 (默认取配置文件中的 config_dir)"
    )

    parser.add_argument(
        "--namespace",
        type=str,
        default=None,
        help="只校验该命名空间中的对象 (默认: 全部)"
    )

    parser.add_argument(
        "--output",
        type=str,
        help="校验结果输出文件 (JSON格式，默认打印到标准输出)"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="配置文件路径 (JSON格式)"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="日志级别 (默认取配置文件，否则为 INFO)"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="日志文件路径"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Web服务器端口 (默认: 8080)"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """主函数"""
    args = build_parser().parse_args(argv)

    # 配置文件错误只能在日志初始化前报告到标准错误
    config = get_config()
    if args.config:
        try:
            config = load_config_from_file(args.config)
        except (OSError, ValueError) as e:
            print(f"❌ 加载配置文件失败: {e}", file=sys.stderr)
            sys.exit(1)

    if args.config_dir:
        config = GlobalConfig(**{**config.to_dict(), "config_dir": os.path.abspath(args.config_dir)})
        set_config(config)

    # 配置日志
    setup_logging(args.log_level or config.log_level, args.log_file or config.log_file)
    logger = logging.getLogger(__name__)
    logger.info(f"使用配置: 配置目录={config.config_dir}")

    # 根据模式执行
    try:
        if args.mode == "validate":
            validations = run_validation(config, args.namespace, args.output)
            if not validations.is_valid():
                logger.warning("⚠️ 存在无效的配置对象")
                sys.exit(1)
        elif args.mode == "web":
            start_web_server(config, args.port)

        logger.info("✅ 任务执行成功")

    except Exception as e:
        logger.error(f"❌ 任务执行失败: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
