# API v1 Package
from battery_ledger.api.v1 import crm, inventory, purchases, sales, daily_purchases, vouchers, notes, tasks, dashboard, ledger

__all__ = [
    'crm',
    'inventory',
    'purchases',
    'sales',
    'daily_purchases',
    'vouchers',
    'notes',
    'tasks',
    'dashboard',
    'ledger',
]
