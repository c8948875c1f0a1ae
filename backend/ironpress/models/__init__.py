from .tenancy import Store, StoreSetting, new_id
from .auth import User, SessionToken
from .catalog import Category, Customer
from .billing import Bill, BillItem, BillSequence
from .notifications import Notification, NotificationJob

__all__ = [
    'Store', 'StoreSetting', 'new_id',
    'User', 'SessionToken',
    'Category', 'Customer',
    'Bill', 'BillItem', 'BillSequence',
    'Notification', 'NotificationJob',
]
