from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.dtos import PlaceOrderDTO, PlaceOrderItemDTO, ShippingAddressDTO
from modules.orders.exceptions import OrderCreationFailed
from modules.orders.models import DeliveryMethod
from modules.orders.views import build_order_service
from modules.products.models import Product

CATALOG = [
    ("Canvas Tote Bag", "Heavy cotton tote with inner pocket.", Decimal("24.00")),
    ("Enamel Pin Set", "Three hard-enamel pins.", Decimal("12.50")),
    ("Risograph Print A3", "Two-colour riso print on recycled paper.", Decimal("35.00")),
    ("Zine Vol. 1", "48 pages, saddle stitched.", Decimal("8.00")),
    ("Zine Vol. 2", "56 pages, perfect bound.", Decimal("10.00")),
    ("Sticker Pack", "Ten vinyl stickers.", Decimal("6.00")),
    ("Hoodie", "Organic cotton hoodie.", Decimal("55.00")),
    ("Poster 50x70", "Offset printed poster.", Decimal("22.00")),
    ("Notebook", "Dot grid, 120 pages.", Decimal("14.00")),
    ("Mug", "Stoneware mug, 350 ml.", Decimal("18.00")),
]

CUSTOMERS = [
    ("Ana Souza", "ana@example.com", "Portland", "OR", "97201"),
    ("Bruno Lima", "bruno@example.com", "Austin", "TX", "73301"),
    ("Carla Mendes", "carla@example.com", "Denver", "CO", "80202"),
    ("Daniel Costa", "daniel@example.com", "Chicago", "IL", "60601"),
    ("Helena Ferreira", "helena@example.com", "Boston", "MA", "02108"),
]

# Forward paths through the status machine used for seeded orders.
STATUS_PATHS = [
    [],
    [OrderStatus.PAID],
    [OrderStatus.PAID, OrderStatus.SHIPPED],
    [OrderStatus.CANCELLED],
    [OrderStatus.PAID, OrderStatus.CANCELLED],
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=20)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        products = self._seed_products()
        orders_created = self._seed_orders(products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
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
        if not User.objects.filter(username="staff").exists():
            User.objects.create_user("staff", password="staff123", is_staff=True)
            created += 1
        if not User.objects.filter(username="shopper").exists():
            User.objects.create_user("shopper", password="shopper123")
            created += 1
        return created

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        for name, description, price in CATALOG:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": description,
                    "price": price,
                    "stock": random.randint(20, 200),
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, products: list[Product], count: int) -> int:
        self.stdout.write("Creating orders...")
        methods = list(DeliveryMethod.objects.filter(is_active=True))
        if not methods or not products:
            self.stdout.write(
                self.style.WARNING("Skipping orders (no delivery methods/products).")
            )
            return 0

        service = build_order_service()
        staff = get_user_model().objects.filter(is_staff=True).first()
        orders_created = 0

        for _ in range(count):
            full_name, email, city, state, postal_code = random.choice(CUSTOMERS)
            method = random.choice(methods)
            payment_method = random.choice(PaymentMethod.values)
            lines = [
                PlaceOrderItemDTO(
                    product_id=product.id,
                    name=product.name,
                    quantity=random.randint(1, 3),
                    unit_price=product.price,
                )
                for product in random.sample(products, k=random.randint(1, 4))
            ]
            dto = PlaceOrderDTO(
                items=lines,
                shipping_address=ShippingAddressDTO(
                    full_name=full_name,
                    phone="5035550100",
                    email=email,
                    address_line_1="100 Main Street",
                    city=city,
                    state=state,
                    postal_code=postal_code,
                ),
                delivery_method_id=method.code,
                payment_method=payment_method,
                customer_email=email,
                **service.expected_totals(lines, payment_method, method),
            )
            try:
                order = service.place_order(dto)
            except OrderCreationFailed as exc:
                self.stdout.write(self.style.WARNING(f"Skipped order: {exc.reason}"))
                continue

            for next_status in random.choice(STATUS_PATHS):
                service.update_status(
                    order.id,
                    next_status,
                    notes="Seeded",
                    user_id=staff.pk if staff else None,
                )
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
