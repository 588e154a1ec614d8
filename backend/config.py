import os
from pathlib import Path
from dotenv import load_dotenv

from storefront.services.env_utils import env_flag, sanitize_env_value, split_csv

load_dotenv()

# backend/ 目录
BACKEND_ROOT = Path(__file__).parent


def _env(name, default=''):
    return sanitize_env_value(os.getenv(name), default)


def _is_dev_mode() -> bool:
    if env_flag(os.getenv('DEV_MODE')):
        return True
    app_env = (_env('FLASK_ENV') or _env('APP_ENV')).lower()
    return app_env == 'development'


class Config:
    """应用配置"""
    SECRET_KEY = _env('SECRET_KEY', 'storefront-secret-key')

    # 存储后端: json / redis / mongo / sql
    STORE_BACKEND = _env('STORE_BACKEND', 'json').lower()

    # 数据路径:
    # 1) 优先使用环境变量 DATA_PATH
    # 2) 默认使用 backend/data（随代码一起打包的快照）
    DATA_PATH = _env('DATA_PATH', str(BACKEND_ROOT / 'data'))

    # 内置快照: 主存储为空时用于 seed，主存储不可用时用于只读回退
    SNAPSHOT_FILE = _env('SNAPSHOT_FILE', os.path.join(DATA_PATH, 'products.json'))

    # json 后端的可写数据文件
    JSON_STORE_FILE = _env('JSON_STORE_FILE', os.path.join(DATA_PATH, 'products_store.json'))

    # MongoDB 配置
    MONGO_URI = _env('MONGO_URI', 'mongodb://localhost:27017/storefront')
    MONGO_COLLECTION = _env('MONGO_COLLECTION', 'products')

    # Redis 配置 (key-value 快照)
    REDIS_URL = _env('REDIS_URL', 'redis://localhost:6379/0')
    REDIS_KEY = _env('REDIS_KEY', 'products')

    # SQL 配置 (表结构后端)
    DATABASE_URL = _env('DATABASE_URL', 'sqlite:///' + str(BACKEND_ROOT / 'data' / 'products.db'))

    # 写接口保护
    # NOTE: DEV_MODE 会跳过写接口的 API key 校验，只用于本地开发
    API_KEY = _env('API_KEY')
    DEV_MODE = _is_dev_mode()

    DEFAULT_IMAGE_URL = _env(
        'DEFAULT_IMAGE_URL',
        'https://upload.wikimedia.org/wikipedia/commons/1/14/No_Image_Available.jpg'
    )

    # API 配置
    API_PREFIX = '/api'

    # CORS allowlist (comma-separated origins); empty means "*"
    # Example:
    # CORS_ALLOWED_ORIGINS=https://shop.example.com,https://www.example.com
    CORS_ALLOWED_ORIGINS = split_csv(os.getenv('CORS_ALLOWED_ORIGINS'))
