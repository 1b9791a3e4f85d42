"""
Seed script: Populate a demo restaurant with realistic data.

What it creates:
- Staff users, one per role (admin, cashier, waiter, kitchen), all with the same password.
- Menu categories and items typical for a taquería.
- Customers (~30).
- Orders (default 40) through OrderService, with mixed statuses.
- Invoices for the delivered orders through InvoiceService.

Run inside the API container to use 'postgres' host and project PYTHONPATH:
    docker compose exec api python scripts/seed_restaurant_data.py \
        --password Comanda!2025 --orders 40

Note: This is intended for development environments only.
"""

# Add project root (/code) to sys.path so `app.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import random
from decimal import Decimal

from app.database.database import SessionLocal, Base, engine
from app.modules.auth.models import User, Role
from app.modules.auth.utils import hash_password
from app.modules.menu.models import MenuCategory, MenuItem
from app.modules.customers.models import Customer
from app.modules.orders.models import OrderKind, OrderStatus
from app.modules.orders.schemas import OrderCreate, OrderLineCreate
from app.modules.orders.service import OrderService
from app.modules.invoices.service import InvoiceService
from app.modules.invoices.models import PaymentMethod
from app.modules.inventory.models import StockMovementType, Supply
from app.modules.inventory.schemas import StockMovementCreate, SupplyCreate
from app.modules.inventory.service import InventoryService
import app.modules.pos.models  # noqa: F401
import app.modules.events.models  # noqa: F401

MENU = {
    "Tacos": [("Taco al pastor", "18"), ("Taco de suadero", "20"), ("Taco de bistec", "22")],
    "Antojitos": [("Quesadilla", "35"), ("Gringa", "55"), ("Sope", "30")],
    "Bebidas": [("Agua de horchata", "25"), ("Refresco", "22"), ("Café de olla", "20")],
}

SUPPLIES = [
    ("Tortilla de maíz", "kg", "20"),
    ("Carne al pastor", "kg", "15"),
    ("Queso Oaxaca", "kg", "8"),
    ("Arroz", "kg", "10"),
]

FIRST_NAMES = ["Ana", "Luis", "María", "José", "Carmen", "Jorge", "Lucía", "Pedro", "Sofía", "Diego"]
LAST_NAMES = ["García", "Hernández", "López", "Martínez", "Pérez", "Sánchez", "Ramírez", "Torres"]


def pick(seq):
    return random.choice(seq)


def create_staff(db, password: str):
    staff = {}
    for role in Role:
        email = f"{role.value}@comanda.mx"
        user = db.query(User).filter(User.email == email).first()
        if not user:
            user = User(
                first_name=role.value.capitalize(),
                last_name="Demo",
                email=email,
                password=hash_password(password),
                role=role,
            )
            db.add(user)
            db.commit()
        staff[role] = user
    return staff


def create_menu(db):
    items = []
    for category_name, entries in MENU.items():
        category = db.query(MenuCategory).filter(MenuCategory.name == category_name).first()
        if not category:
            category = MenuCategory(name=category_name)
            db.add(category)
            db.flush()
        for name, price in entries:
            item = db.query(MenuItem).filter(MenuItem.name == name).first()
            if not item:
                item = MenuItem(category_id=category.id, name=name, price=Decimal(price))
                db.add(item)
            items.append(item)
    db.commit()
    return items


def create_supplies(db, staff):
    inventory = InventoryService(db)
    supplies = {}
    for name, unit, initial in SUPPLIES:
        supply = db.query(Supply).filter(Supply.name == name).first()
        if not supply:
            supply = inventory.create_supply(SupplyCreate(name=name, unit=unit, initial_stock=Decimal(initial)))
            inventory.record_movement(
                StockMovementCreate(
                    supply_id=supply.id, type=StockMovementType.IN,
                    quantity=Decimal(initial) / 2, note="Compra"
                ),
                user_id=staff[Role.KITCHEN].id,
            )
        supplies[name] = supply
    return supplies


def create_customers(db, count=30):
    customers = []
    for i in range(count):
        customer = Customer(
            first_name=pick(FIRST_NAMES),
            last_name=pick(LAST_NAMES),
            phone=f"55{random.randint(10000000, 99999999)}",
            address=f"Calle {random.randint(1, 120)} #{random.randint(1, 999)}",
        )
        db.add(customer)
        customers.append(customer)
    db.commit()
    return customers


def create_orders(db, staff, items, customers, orders_count):
    orders = OrderService(db)
    invoices = InvoiceService(db)
    invoiced = 0
    flow = [OrderStatus.IN_PREPARATION, OrderStatus.READY, OrderStatus.DELIVERED]

    for _ in range(orders_count):
        kind = pick(list(OrderKind))
        lines = [
            OrderLineCreate(menu_item_id=item.id, quantity=random.randint(1, 4))
            for item in random.sample(items, k=random.randint(1, 4))
        ]
        order = orders.create_order(
            OrderCreate(
                kind=kind,
                customer_id=pick(customers).id if kind != OrderKind.TABLE else None,
                table_label=f"Mesa {random.randint(1, 12)}" if kind == OrderKind.TABLE else None,
                lines=lines,
            ),
            staff_id=staff[Role.WAITER].id,
        )

        if random.random() < 0.1:
            orders.set_status(order.id, OrderStatus.CANCELLED)
            continue

        for status in flow[:random.randint(0, len(flow))]:
            orders.set_status(order.id, status)

        if order.status == OrderStatus.DELIVERED:
            invoices.issue_invoice(order.id, pick(list(PaymentMethod)), issued_by=staff[Role.CASHIER].id)
            invoiced += 1

    return invoiced


def main():
    parser = argparse.ArgumentParser(description="Seed demo restaurant data")
    parser.add_argument("--password", default="Comanda!2025")
    parser.add_argument("--customers", type=int, default=30)
    parser.add_argument("--orders", type=int, default=40)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    random.seed(args.seed)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        staff = create_staff(db, args.password)
        items = create_menu(db)
        print(f"Menu items: {len(items)}")

        supplies = create_supplies(db, staff)
        print(f"Supplies: {len(supplies)}")

        customers = create_customers(db, args.customers)
        print(f"Customers created: {len(customers)}")

        print("Creating orders...")
        invoiced = create_orders(db, staff, items, customers, args.orders)
        print(f"Orders created: {args.orders}, invoiced: {invoiced}")

        print("\nSeed completed.")
        print("Login credentials (same password for every role):")
        for role, user in staff.items():
            print(f"  {role.value:<8} {user.email}")
        print(f"  Password: {args.password}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
