import os
import sys
import logging

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from services.provisioning import provision
from services.role_store import RoleStore
from services.module_grants import ModuleGrantSet
from utils.errors import ConflictError

logger = logging.getLogger(__name__)

# Configuration
SAMPLE_ROLES = {
    "Sales": ("Sales team", ["customers", "dashboard", "invoices"]),
    "Support": ("Customer support", ["customers", "expenses"]),
    "Warehouse": ("Stock and purchasing", ["purchaseOrders", "stock"]),
    "Accountant": ("Finance", ["expenses", "financialProgress", "invoices"]),
}
# End Configuration


def populate():
    """Provisions the Admin role/account and seeds sample roles with their module grants."""
    init_db()
    session = SessionLocal()
    try:
        provision(session)
        roles = RoleStore(session)
        grants = ModuleGrantSet(session)
        for name, (description, modules) in SAMPLE_ROLES.items():
            try:
                role = roles.create(name, description)
            except ConflictError:
                role = roles.find_by_name(name)
                logger.info("Role %s already exists, refreshing its modules", name)
            grants.replace_modules(role.id, modules)
            print(f"{role.name}: {', '.join(grants.get_modules(role.id)) or '(no modules)'}")
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    populate()
