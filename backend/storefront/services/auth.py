"""
写接口的 API key 校验

NOTE: 这只是基于请求头的弱校验，不是加密认证。Origin/Referer 由客户端声明，
可以被伪造；DEV_MODE 下完全跳过校验。
"""

import hmac
from urllib.parse import urlparse

from storefront.errors import AuthError


def supplied_api_key(req):
    """API key from the X-API-Key header, the api_key query arg or the JSON body."""
    key = req.headers.get('X-API-Key') or req.args.get('api_key')
    if key:
        return key
    body = req.get_json(silent=True)
    if isinstance(body, dict) and body.get('api_key'):
        return str(body['api_key'])
    return None


def origin_matches_host(req) -> bool:
    declared = req.headers.get('Origin') or req.headers.get('Referer') or ''
    if not declared:
        return False
    netloc = (urlparse(declared).netloc or '').lower()
    return bool(netloc) and netloc == (req.host or '').lower()


def is_authorized(req, config) -> bool:
    if config.get('DEV_MODE'):
        return True
    if origin_matches_host(req):
        return True
    expected = config.get('API_KEY') or ''
    supplied = supplied_api_key(req)
    # An unset API_KEY never matches
    if not expected or not supplied:
        return False
    return hmac.compare_digest(supplied.encode('utf-8'), expected.encode('utf-8'))


def require_api_key(req, config) -> None:
    if not is_authorized(req, config):
        raise AuthError('Invalid or missing API key')
