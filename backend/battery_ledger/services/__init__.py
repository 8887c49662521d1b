# Services Package
from battery_ledger.services.ledger_service import (
    LedgerService, LedgerStats, TransactionRecord, aggregate_transactions
)
from battery_ledger.services.inventory_service import BatteryTypeService
from battery_ledger.services.purchase_service import PurchaseService
from battery_ledger.services.sales_service import SalesService
from battery_ledger.services.daily_purchase_service import DailyPurchaseService
from battery_ledger.services.crm_service import CustomerService, SupplierService
from battery_ledger.services.voucher_service import VoucherService
from battery_ledger.services.notes_service import NoteService, TaskService
from battery_ledger.services.dashboard_service import DashboardService

__all__ = [
    'LedgerService',
    'LedgerStats',
    'TransactionRecord',
    'aggregate_transactions',
    'BatteryTypeService',
    'PurchaseService',
    'SalesService',
    'DailyPurchaseService',
    'CustomerService',
    'SupplierService',
    'VoucherService',
    'NoteService',
    'TaskService',
    'DashboardService',
]
