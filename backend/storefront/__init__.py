from flask import Flask
from flask_cors import CORS

from storefront.services.product_store import create_store


def create_app(config_overrides=None, store=None):
    """创建 Flask 应用

    config_overrides: 覆盖 Config 中的配置项（测试用）
    store: 直接注入的 ProductStore 实例；默认按 STORE_BACKEND 创建
    """
    from config import Config

    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    from storefront.routes.products import ALLOWED_HEADERS, ALLOWED_METHODS, products_bp

    # CORS: use explicit allowlist in production when provided.
    cors_origins = app.config.get('CORS_ALLOWED_ORIGINS')
    if cors_origins:
        CORS(app, resources={r"/api/*": {"origins": cors_origins}},
             methods=ALLOWED_METHODS, allow_headers=ALLOWED_HEADERS)
    else:
        CORS(app, resources={r"/api/*": {"origins": "*"}}, send_wildcard=True,
             methods=ALLOWED_METHODS, allow_headers=ALLOWED_HEADERS)

    # 存储实例每个进程只创建一次，后端客户端在首次使用时再连接
    app.extensions['product_store'] = store if store is not None else create_store(app.config)

    app.register_blueprint(products_bp, url_prefix=f"{app.config['API_PREFIX']}/products")

    return app
