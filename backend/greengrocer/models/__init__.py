from greengrocer.models.user import AuthAccount, User
from greengrocer.models.product import Product
from greengrocer.models.audit import AuditLog

__all__ = [
    "AuthAccount", "User",
    "Product",
    "AuditLog",
]
