from spiritart.models.image import ImageRecord
from spiritart.models.transaction import Transaction
from spiritart.models.user import User

__all__ = ["ImageRecord", "Transaction", "User"]
