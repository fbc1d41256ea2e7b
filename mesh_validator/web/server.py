"""
Web服务器

提供校验结果的 JSON API：
- GET  /api/health                             健康检查
- GET  /api/validations?namespace=NS           校验集合与汇总
- GET  /api/validations/<type>/<ns>/<name>     单个对象的校验结果
- POST /api/graph/badges                       为提交的流量图节点打 Istio 徽标
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from mesh_validator.config import GlobalConfig, get_config
from mesh_validator.core.loader import load_snapshot
from mesh_validator.core.validation_service import IstioValidationsService
from mesh_validator.graph.istio_appender import IstioAppender
from mesh_validator.models.data_models import IstioValidationKey

logger = logging.getLogger(__name__)


def create_app(config: Optional[GlobalConfig] = None) -> Flask:
    """
    创建Flask应用

    每次请求都重新加载配置快照，目录内容变化后无需重启服务

    Args:
        config: 全局配置，默认使用配置单例
    """
    config = config or get_config()
    app = Flask(__name__)
    CORS(app)
    service = IstioValidationsService(config=config)

    def load(namespace: Optional[str]):
        return load_snapshot(config.config_dir, namespace=namespace, root_namespace=config.root_namespace)

    @app.route('/api/health')
    def health():
        return jsonify({"status": "ok", "configDir": config.config_dir})

    @app.route('/api/validations')
    def list_validations():
        namespace = request.args.get('namespace') or None
        try:
            validations = service.get_validations(load(namespace))
        except FileNotFoundError as e:
            logger.error(f"加载配置快照失败: {e}")
            return jsonify({"error": str(e)}), 500

        return jsonify({
            "namespace": namespace,
            "summary": validations.summary(),
            "validations": validations.to_dict()
        })

    @app.route('/api/validations/<object_type>/<namespace>/<name>')
    def get_validation(object_type, namespace, name):
        try:
            validations = service.get_validations(load(namespace))
        except FileNotFoundError as e:
            logger.error(f"加载配置快照失败: {e}")
            return jsonify({"error": str(e)}), 500

        validation = validations.get(IstioValidationKey(object_type, namespace, name))
        if validation is None:
            return jsonify({"error": f"校验结果不存在: {object_type}/{namespace}/{name}"}), 404
        return jsonify(validation.to_dict())

    @app.route('/api/graph/badges', methods=['POST'])
    def graph_badges():
        data = request.get_json(silent=True) or {}
        nodes = data.get('nodes')
        if not isinstance(nodes, (list, dict)):
            return jsonify({"error": "请求体必须包含 nodes（列表或以节点ID为键的对象）"}), 400

        try:
            context = load(None)
        except FileNotFoundError as e:
            logger.error(f"加载配置快照失败: {e}")
            return jsonify({"error": str(e)}), 500

        appender = IstioAppender(
            context,
            app_label_name=config.app_label_name,
            version_label_name=config.version_label_name,
            identity_domain=config.identity_domain
        )
        appender.append_graph(nodes, data.get('namespaces'))
        return jsonify({"nodes": nodes})

    return app


class WebServer:
    """Web服务器"""

    def __init__(self, port: Optional[int] = None, config: Optional[GlobalConfig] = None):
        self.config = config or get_config()
        self.port = port or self.config.web_port
        self.app = create_app(self.config)

    def run(self):
        """启动服务器"""
        logger.info("🌐 Web服务器启动成功")
        logger.info(f"   访问地址: http://localhost:{self.port}")
        logger.info(f"   配置目录: {self.config.config_dir}")

        self.app.run(
            host='0.0.0.0',
            port=self.port,
            debug=False
        )
