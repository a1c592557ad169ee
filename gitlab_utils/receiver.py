"""
Gitlab Webhook 接收
- WebhookReceiver: 校验 X-Gitlab-Token，解析 JSON，按 object_kind 分发给回调
- HttpListener: 一个端口一个 HTTP 服务，按路径挂载多个 WebhookReceiver
- ReceiverRegistry: 按 (path, secret, port) 复用 WebhookReceiver，按端口复用 HttpListener
"""

import hmac
import json
import logging
import socket
import threading
from types import MappingProxyType

from flask import Flask, jsonify, request as flask_request
from werkzeug.serving import make_server

logger = logging.getLogger(__name__)

GITLAB_EVENT_HEADER = "X-Gitlab-Event"
GITLAB_TOKEN_HEADER = "X-Gitlab-Token"


def normalize_path(path):
    """统一路径格式：以 / 开头，不以 / 结尾（根路径除外）"""
    path = "/" + (path or "").strip("/")
    return path


class WebhookReceiver:
    """单个 webhook 地址的接收器"""

    def __init__(self, path="/", secret=""):
        self.path = normalize_path(path)
        self.secret = secret or ""
        self._handlers = {}

    def register(self, kind, handler):
        """
        注册事件回调，同一事件可以注册多个回调

        Args:
            kind: 事件类型（object_kind），如 push、merge_request
            handler: 回调函数，参数为事件数据
        """
        self._handlers.setdefault(kind, []).append(handler)
        logger.debug("注册 Gitlab 事件回调: path=%s, kind=%s", self.path, kind)

    def handlers(self, kind):
        return tuple(self._handlers.get(kind, ()))

    def _verify_token(self, token):
        if not self.secret:
            return True
        if token is None:
            return False
        return hmac.compare_digest(token.encode("utf-8"), self.secret.encode("utf-8"))

    def handle(self, headers, body):
        """
        处理一次 webhook 请求

        Args:
            headers: 请求头（支持 .get 的映射）
            body: 请求体 bytes

        Returns:
            tuple: (response_dict, status_code)
        """
        event_header = headers.get(GITLAB_EVENT_HEADER)
        if not event_header:
            logger.warning("缺少 %s 请求头，忽略请求: path=%s", GITLAB_EVENT_HEADER, self.path)
            return {"code": 400, "msg": f"No {GITLAB_EVENT_HEADER} found on request"}, 400

        if not self._verify_token(headers.get(GITLAB_TOKEN_HEADER)):
            logger.warning("%s 与配置的 secret 不一致，忽略请求: path=%s", GITLAB_TOKEN_HEADER, self.path)
            return {"code": 400, "msg": f"{GITLAB_TOKEN_HEADER} does not match"}, 400

        try:
            data = json.loads(body)
        except (TypeError, ValueError) as e:
            logger.warning("Gitlab webhook 请求体不是合法 JSON: %s", e)
            return {"code": 400, "msg": "Invalid JSON body"}, 400
        if not isinstance(data, dict):
            return {"code": 400, "msg": "Invalid JSON body"}, 400

        kind = data.get("object_kind")
        logger.info("收到 Gitlab webhook: event=%s, kind=%s", event_header, kind)

        handlers = self.handlers(kind)
        if not handlers:
            logger.debug("没有注册的回调，忽略: kind=%s", kind)
        for handler in handlers:
            try:
                handler(data)
            except Exception as e:
                logger.error("处理 Gitlab 事件失败: kind=%s, error=%s", kind, e, exc_info=True)

        return {"code": 0, "msg": "success"}, 200


class HttpListener:
    """一个端口上的 HTTP 服务"""

    def __init__(self, host, port):
        self.host = host
        self.port = port
        self._receivers = {}
        self._server = None
        self._thread = None
        self.app = self._create_app()

    def _create_app(self):
        app = Flask(__name__)

        @app.errorhandler(404)
        def handle_404(error):
            logger.warning("404 Not Found: %s", flask_request.path)
            return jsonify({"code": 404, "msg": "资源不存在"}), 404

        @app.route("/api/health", methods=["GET"])
        def health_check():
            """健康检查接口"""
            return jsonify({
                "code": 0,
                "msg": "service is running",
                "data": {
                    "port": self.port,
                    "paths": sorted(self._receivers),
                },
            })

        @app.route("/", defaults={"subpath": ""}, methods=["POST"])
        @app.route("/<path:subpath>", methods=["POST"])
        def gitlab_webhook(subpath):
            receiver = self._receivers.get(normalize_path(subpath))
            if receiver is None:
                return handle_404(None)
            result, status_code = receiver.handle(flask_request.headers, flask_request.get_data())
            return jsonify(result), status_code

        return app

    @property
    def receivers(self):
        return MappingProxyType(self._receivers)

    @property
    def listening(self):
        return self._server is not None

    def mount(self, receiver):
        """把 receiver 挂载到它的路径上，同一路径只能挂载一个"""
        existing = self._receivers.get(receiver.path)
        if existing is not None and existing is not receiver:
            raise ValueError(f"端口 {self.port} 的路径 {receiver.path} 已被其他 secret 占用")
        self._receivers[receiver.path] = receiver

    def _bind(self):
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(socket.SOMAXCONN)
        except OSError:
            sock.close()
            raise
        return sock

    def listen(self):
        """启动 HTTP 服务（后台线程），端口绑定失败时抛出异常"""
        if self._server is not None:
            return
        # 自己绑定端口：werkzeug 绑定失败时会直接 sys.exit
        sock = self._bind()
        try:
            self._server = make_server(self.host, self.port, self.app, threaded=True, fd=sock.fileno())
        finally:
            sock.close()
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name=f"gitlab-webhook-{self.port}",
            daemon=True,
        )
        self._thread.start()
        logger.info("🌐 Gitlab webhook 服务已启动: http://%s:%s %s", self.host, self.port, sorted(self._receivers))

    def close(self):
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        self._thread.join()
        self._server = None
        self._thread = None
        logger.info("Gitlab webhook 服务已关闭: port=%s", self.port)


class ReceiverRegistry:
    """WebhookReceiver 和 HttpListener 的注册表，由 main 创建和关闭"""

    def __init__(self, host="0.0.0.0"):
        self.host = host
        self._receivers = {}
        self._listeners = {}

    @property
    def receivers(self):
        return MappingProxyType(self._receivers)

    @property
    def listeners(self):
        return MappingProxyType(self._listeners)

    def get_receiver(self, path, secret, port):
        """
        获取 (path, secret, port) 对应的 receiver，不存在时创建
        同一端口只会创建一个 HttpListener

        Args:
            path: webhook 路径
            secret: X-Gitlab-Token，空字符串表示不校验
            port: 监听端口

        Returns:
            WebhookReceiver
        """
        key = (normalize_path(path), secret or "", int(port))
        receiver = self._receivers.get(key)
        if receiver is not None:
            return receiver

        listener = self._listeners.get(key[2])
        if listener is None:
            listener = HttpListener(self.host, key[2])

        receiver = WebhookReceiver(key[0], key[1])
        listener.mount(receiver)
        self._listeners[key[2]] = listener
        self._receivers[key] = receiver
        return receiver

    def listen(self):
        for listener in self._listeners.values():
            listener.listen()

    def close(self):
        for listener in self._listeners.values():
            listener.close()
        self._listeners.clear()
        self._receivers.clear()
