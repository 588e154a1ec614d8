import uuid

from storefront.errors import ValidationError

DEFAULT_IMAGE_URL = 'https://upload.wikimedia.org/wikipedia/commons/1/14/No_Image_Available.jpg'

REQUIRED_FIELDS = ('title', 'productUrl')


def _clean(value) -> str:
    if value is None:
        return ''
    return str(value).strip()


class Product:
    """推荐商品模型

    持久化 / 接口字段使用 camelCase: id, title, imageUrl, description, productUrl
    """

    __slots__ = ('_id', 'title', 'image_url', 'description', 'product_url')

    def __init__(self, id, title, product_url, image_url=None, description='',
                 default_image_url=DEFAULT_IMAGE_URL):
        self._id = str(id)
        self.title = title
        self.product_url = product_url
        self.image_url = image_url or default_image_url
        self.description = description or ''

    @property
    def id(self) -> str:
        # 创建后不可修改
        return self._id

    def to_dict(self):
        """转换为字典"""
        return {
            'id': self.id,
            'title': self.title,
            'imageUrl': self.image_url,
            'description': self.description,
            'productUrl': self.product_url,
        }

    @staticmethod
    def missing_fields(data):
        """返回缺失的必填字段"""
        data = data if isinstance(data, dict) else {}
        return [field for field in REQUIRED_FIELDS if not _clean(data.get(field))]

    @staticmethod
    def stable_id(data) -> str:
        """Deterministic id for snapshot records that ship without one."""
        seed = f"{_clean(data.get('productUrl'))}|{_clean(data.get('title'))}"
        return str(uuid.uuid5(uuid.NAMESPACE_URL, seed))

    @classmethod
    def create(cls, data, default_image_url=DEFAULT_IMAGE_URL):
        """从请求数据创建新商品，分配新的 id（忽略客户端传入的 id）"""
        missing = cls.missing_fields(data)
        if missing:
            raise ValidationError(
                'Missing required fields: title and productUrl are required',
                fields=missing,
            )
        return cls(
            id=uuid.uuid4(),
            title=_clean(data['title']),
            product_url=_clean(data['productUrl']),
            image_url=_clean(data.get('imageUrl')),
            description=_clean(data.get('description')),
            default_image_url=default_image_url,
        )

    @classmethod
    def from_dict(cls, data, default_image_url=DEFAULT_IMAGE_URL):
        """从已存储的记录创建商品"""
        if cls.missing_fields(data):
            raise ValidationError('Stored product record is missing title or productUrl')
        record_id = _clean(data.get('id')) or cls.stable_id(data)
        return cls(
            id=record_id,
            title=data['title'],
            product_url=data['productUrl'],
            image_url=data.get('imageUrl'),
            description=data.get('description'),
            default_image_url=default_image_url,
        )

    def __eq__(self, other):
        if not isinstance(other, Product):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Product(id={self.id!r}, title={self.title!r})"
