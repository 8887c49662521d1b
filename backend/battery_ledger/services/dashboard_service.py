"""
Dashboard Service - Headline figures for the back office
"""
from typing import Dict
from sqlalchemy.orm import Session
from sqlalchemy import func
from decimal import Decimal
from datetime import date
from battery_ledger.models import Customer, Supplier, Purchase, Sale, DailyPurchase, BatteryType


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def get_stats(self, today: date = None) -> Dict:
        """Get main dashboard statistics"""
        today = today or date.today()
        month_start = today.replace(day=1)

        total_customers = self.db.query(func.count(Customer.id)).scalar() or 0
        total_suppliers = self.db.query(func.count(Supplier.id)).scalar() or 0

        total_sales = self.db.query(func.sum(Sale.total)).scalar() or Decimal("0")
        total_purchases = self.db.query(func.sum(Purchase.total)).scalar() or Decimal("0")
        total_daily = self.db.query(func.sum(DailyPurchase.final_total)).scalar() or Decimal("0")

        # This month
        month_sales = self.db.query(func.sum(Sale.total)).filter(
            Sale.date >= month_start,
            Sale.date <= today
        ).scalar() or Decimal("0")
        month_purchases = self.db.query(func.sum(Purchase.total)).filter(
            Purchase.date >= month_start,
            Purchase.date <= today
        ).scalar() or Decimal("0")
        month_daily = self.db.query(func.sum(DailyPurchase.final_total)).filter(
            DailyPurchase.date >= month_start,
            DailyPurchase.date <= today
        ).scalar() or Decimal("0")

        # Outstanding balances
        customer_balances = self.db.query(func.sum(Customer.balance)).scalar() or Decimal("0")
        supplier_balances = self.db.query(func.sum(Supplier.balance)).scalar() or Decimal("0")

        inventory = self.db.query(BatteryType).filter(
            BatteryType.is_active == True
        ).order_by(BatteryType.name).all()

        return {
            "total_customers": total_customers,
            "total_suppliers": total_suppliers,
            "total_sales": float(total_sales),
            "total_purchases": float(total_purchases + total_daily),
            "month_sales": float(month_sales),
            "month_purchases": float(month_purchases + month_daily),
            "customer_balances": float(customer_balances),
            "supplier_balances": float(supplier_balances),
            "inventory": [
                {
                    "id": battery_type.id,
                    "name": battery_type.name,
                    "current_qty": float(battery_type.current_qty or 0),
                    "unit_price": float(battery_type.unit_price or 0),
                }
                for battery_type in inventory
            ],
            "total_stock": float(sum(
                (battery_type.current_qty or Decimal("0") for battery_type in inventory), Decimal("0")
            )),
        }
