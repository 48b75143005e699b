# backend/models/module_catalog.py
import enum


# Fixed set of addressable feature areas; a role may be granted any subset
class AppModule(str, enum.Enum):
    DASHBOARD = "dashboard"
    INVOICES = "invoices"
    CUSTOMERS = "customers"
    EXPENSES = "expenses"
    PURCHASE_ORDERS = "purchaseOrders"
    STOCK = "stock"
    FINANCIAL_PROGRESS = "financialProgress"
    SETTINGS = "settings"


MODULE_DESCRIPTIONS = {
    AppModule.DASHBOARD: ("Dashboard", "View system dashboard and analytics"),
    AppModule.INVOICES: ("Invoices", "Manage invoices, payments, and billing"),
    AppModule.CUSTOMERS: ("Customers", "Manage customer information and contacts"),
    AppModule.EXPENSES: ("Expenses", "Track and manage business expenses"),
    AppModule.PURCHASE_ORDERS: ("Purchase Orders", "Create and manage purchase orders"),
    AppModule.STOCK: ("Stock", "Manage inventory and stock levels"),
    AppModule.FINANCIAL_PROGRESS: ("Financial Progress", "View financial reports and analytics"),
    AppModule.SETTINGS: ("Settings", "Configure system and user settings"),
}

ALL_MODULES = frozenset(m.value for m in AppModule)


def is_known_module(name) -> bool:
    return isinstance(name, str) and name in ALL_MODULES
