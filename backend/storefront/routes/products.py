from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import MethodNotAllowed

from storefront.errors import AuthError, BackendError, StoreError
from storefront.services.auth import require_api_key
from storefront.services.product_service import ProductService

products_bp = Blueprint('products', __name__)

ALLOWED_METHODS = ['GET', 'POST', 'DELETE', 'OPTIONS']
ALLOWED_HEADERS = ['Content-Type', 'X-API-Key']


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _error_response(error: StoreError):
    if isinstance(error, AuthError):
        return jsonify({'error': error.message}), error.http_status
    if isinstance(error, BackendError):
        current_app.logger.error('%s %s backend error: %s', request.method, request.path, error)
        return jsonify({'message': 'Server error'}), 500
    return jsonify({'message': error.message}), error.http_status


@products_bp.after_app_request
def add_cors_headers(response):
    """每个 API 响应都声明允许的方法和请求头（Allow-Origin 由 flask-cors 处理）"""
    if request.path.startswith(current_app.config.get('API_PREFIX', '/api')):
        response.headers['Access-Control-Allow-Methods'] = ', '.join(ALLOWED_METHODS)
        response.headers['Access-Control-Allow-Headers'] = ', '.join(ALLOWED_HEADERS)
    return response


@products_bp.app_errorhandler(MethodNotAllowed)
def method_not_allowed(error):
    response = jsonify({'message': f'Method {request.method} Not Allowed'})
    response.status_code = 405
    response.headers['Allow'] = ', '.join(error.valid_methods or ALLOWED_METHODS)
    return response


@products_bp.route('', methods=ALLOWED_METHODS, provide_automatic_options=False)
def products():
    """商品资源: GET 查询，POST 新增，DELETE 批量删除"""
    if request.method == 'OPTIONS':
        # CORS preflight
        return '', 200

    try:
        if request.method == 'GET':
            return _get_products()

        require_api_key(request, current_app.config)
        if request.method == 'POST':
            return _create_product()
        return _delete_products()
    except StoreError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception('/api/products error')
        return jsonify({'message': 'Server error'}), 500


def _get_products():
    product_id = request.args.get('id', '').strip()
    title = request.args.get('title', '').strip()

    if product_id:
        return jsonify(ProductService.get_product(product_id))
    if title:
        return jsonify(ProductService.search_products(title))
    return jsonify(ProductService.list_products())


def _create_product():
    payload = _json_body()
    try:
        product = ProductService.create_product(payload)
    except BackendError as e:
        current_app.logger.error('POST /api/products error: %s', e)
        return jsonify({'message': 'Error adding product'}), 500
    return jsonify(product), 201


def _delete_products():
    payload = _json_body()
    try:
        result = ProductService.delete_products(payload)
    except BackendError as e:
        current_app.logger.error('DELETE /api/products error: %s', e)
        return jsonify({'message': 'Error deleting products'}), 500
    return jsonify(result)
