from .tenancy import Store, StoreBusinessHours, AccountingSettings
from .catalog import MenuItem, MenuOption, MenuTopping
from .tables import DiningTable
from .orders import Order, OrderItem, OrderItemOption, OrderItemTopping
from .sales import SalesCycle, ArchivedOrder, ArchivedOrderItem, ArchivedOrderItemOption, ArchivedOrderItemTopping
from .accounting import DailySales

__all__ = [
    'Store', 'StoreBusinessHours', 'AccountingSettings',
    'MenuItem', 'MenuOption', 'MenuTopping',
    'DiningTable',
    'Order', 'OrderItem', 'OrderItemOption', 'OrderItemTopping',
    'SalesCycle', 'ArchivedOrder', 'ArchivedOrderItem', 'ArchivedOrderItemOption', 'ArchivedOrderItemTopping',
    'DailySales',
]
