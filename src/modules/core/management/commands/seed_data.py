from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.accounts.models import Account, AccountRole
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.core.cache import DjangoCacheStore
from modules.core.exceptions import DomainError
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, ShippingAddressDTO
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

SEED_ADDRESS = ShippingAddressDTO(
    street="350 Fifth Avenue",
    city="New York",
    state="NY",
    zip_code="10118",
    country="US",
)


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=30)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        accounts = self._seed_accounts()
        products = self._seed_products()
        orders_created = self._seed_orders(accounts, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"accounts={len(accounts)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="user").exists():
            User.objects.create_user("user", password="user123")
            created += 1
        return created

    def _seed_accounts(self) -> list[Account]:
        self.stdout.write("Creating accounts...")
        accounts: list[Account] = []
        seed_accounts = [
            ("admin@example.com", "Alice", "Admin", AccountRole.ADMIN),
            ("moderator@example.com", "Mark", "Moderator", AccountRole.MODERATOR),
            ("ana@example.com", "Ana", "Souza", AccountRole.CUSTOMER),
            ("bruno@example.com", "Bruno", "Lima", AccountRole.CUSTOMER),
            ("carla@example.com", "Carla", "Mendes", AccountRole.CUSTOMER),
            ("daniel@example.com", "Daniel", "Costa", AccountRole.CUSTOMER),
            ("helena@example.com", "Helena", "Ferreira", AccountRole.CUSTOMER),
        ]
        for email, first_name, last_name, role in seed_accounts:
            account, _ = Account.objects.get_or_create(
                email=email,
                defaults={
                    "first_name": first_name,
                    "last_name": last_name,
                    "role": role,
                },
            )
            accounts.append(account)
        self.stdout.write(self.style.SUCCESS("Creating accounts... Done!"))
        return accounts

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("ELEC-001", "27in Monitor", "electronics", Decimal("329.90")),
            ("ELEC-002", "Mechanical Keyboard", "electronics", Decimal("89.90")),
            ("ELEC-003", "Gaming Mouse", "electronics", Decimal("49.90")),
            ("ELEC-004", "14in Laptop", "electronics", Decimal("999.00")),
            ("ELEC-005", "Headset", "electronics", Decimal("59.90")),
            ("HOME-001", "Standing Desk", "furniture", Decimal("449.00")),
            ("HOME-002", "Ergonomic Chair", "furniture", Decimal("299.00")),
            ("HOME-003", "Bookshelf", "furniture", Decimal("129.00")),
            ("OFF-001", "A4 Paper", "office", Decimal("7.90")),
            ("OFF-002", "Blue Pen", "office", Decimal("1.20")),
            ("OFF-003", "Notebook", "office", Decimal("4.50")),
            ("OFF-004", "Stapler", "office", Decimal("12.90")),
            ("OFF-005", "Sticky Notes", "office", Decimal("3.90")),
            ("OFF-006", "Desk Lamp", "office", Decimal("24.90")),
        ]
        for sku, name, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "category_id": category,
                    "price": price,
                    "stock": random.randint(20, 200),
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(
        self, accounts: list[Account], products: list[Product], count: int
    ) -> int:
        self.stdout.write("Creating orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0
        if not accounts or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no accounts/products)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            account_repository=AccountDjangoRepository(),
            cache=DjangoCacheStore(),
        )
        # Each entry is the sequence of updates applied after checkout.
        lifecycles = [
            [],
            [("payment", PaymentStatus.PAID)],
            [("payment", PaymentStatus.PAID), ("status", OrderStatus.PROCESSING)],
            [
                ("payment", PaymentStatus.PAID),
                ("status", OrderStatus.PROCESSING),
                ("status", OrderStatus.SHIPPED),
                ("status", OrderStatus.DELIVERED),
            ],
            [("status", OrderStatus.CANCELLED)],
            [("payment", PaymentStatus.FAILED)],
        ]

        created = 0
        for _ in range(count):
            account = random.choice(accounts)
            lines = random.sample(products, k=random.randint(1, 4))
            dto = CreateOrderDTO(
                user_id=account.id,
                items=[
                    CreateOrderItemDTO(product_id=p.id, quantity=random.randint(1, 3))
                    for p in lines
                ],
                shipping_address=SEED_ADDRESS,
            )
            try:
                order = service.create_order(dto)
                for kind, target in random.choice(lifecycles):
                    if kind == "payment":
                        service.update_payment_status(str(order.id), target)
                    else:
                        service.update_order_status(str(order.id), target)
            except DomainError as exc:
                self.stdout.write(self.style.WARNING(f"Skipped order: {exc.message}"))
                continue
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
