"""
商品服务 - 路由层使用的业务逻辑

底层实现委托给 product_store（由 create_app 按配置创建并挂在 app.extensions 上）。
"""

from typing import Any, Dict, List

from flask import current_app

from storefront.errors import NotFoundError, ValidationError
from .product_store import ProductStore


class ProductService:
    """商品服务类"""

    @staticmethod
    def _store() -> ProductStore:
        return current_app.extensions['product_store']

    @classmethod
    def list_products(cls) -> List[Dict[str, Any]]:
        """获取全部商品（主存储不可用时返回快照或空列表）"""
        return cls._store().list_all().to_list()

    @classmethod
    def get_product(cls, product_id: str) -> Dict[str, Any]:
        product = cls._store().get_by_id(product_id)
        if product is None:
            raise NotFoundError(f'Product with ID {product_id} not found')
        return product.to_dict()

    @classmethod
    def search_products(cls, title: str) -> List[Dict[str, Any]]:
        return cls._store().search_by_title(title).to_list()

    @classmethod
    def create_product(cls, payload: Dict[str, Any]) -> Dict[str, Any]:
        return cls._store().insert(payload).to_dict()

    @staticmethod
    def parse_ids(payload: Dict[str, Any]) -> List[str]:
        """校验删除请求体中的 ids 数组"""
        ids = payload.get('ids') if isinstance(payload, dict) else None
        if not isinstance(ids, list) or not ids:
            raise ValidationError('Request body must include an "ids" array')
        if not all(isinstance(i, (str, int)) and not isinstance(i, bool) for i in ids):
            raise ValidationError('"ids" must only contain string ids')
        return [str(i) for i in ids]

    @classmethod
    def delete_products(cls, payload: Dict[str, Any]) -> Dict[str, Any]:
        ids = cls.parse_ids(payload)
        result = cls._store().delete_by_ids(ids)
        return {
            'message': f'Successfully deleted {result.deleted_count} products',
            **result.to_dict(),
        }
