from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.deliveries.dtos import CreateDriverDTO
from modules.deliveries.models import Driver
from modules.deliveries.services import build_driver_service
from modules.inventory.constants import MovementKind
from modules.inventory.models import Depot, InventoryRecord
from modules.inventory.repositories.django_repository import DepotDjangoRepository
from modules.inventory.services import build_inventory_ledger
from modules.products.models import Product, ProductStatus


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        depots = self._seed_depots()
        products = self._seed_products()
        receipts = self._seed_stock(depots, products)
        drivers_created = self._seed_drivers(depots)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"depots={len(depots)}, "
                f"products={len(products)}, "
                f"receipts={receipts}, "
                f"drivers={drivers_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        seed_users = [
            ("admin", "admin123", {"is_staff": True, "is_superuser": True}),
            ("manager", "manager123", {"is_staff": True}),
            ("customer", "customer123", {"email": "customer@example.com"}),
            ("driver1", "driver123", {}),
            ("driver2", "driver123", {}),
        ]
        for username, password, extra in seed_users:
            if User.objects.filter(username=username).exists():
                continue
            User.objects.create_user(username, password=password, **extra)
            created += 1
        return created

    def _seed_depots(self) -> list[Depot]:
        self.stdout.write("Creating depots...")
        depots: list[Depot] = []
        seed_depots = [
            ("CMB", "Colombo RDC", "Western", "No. 12, Baseline Road, Colombo 09"),
            ("KDY", "Kandy RDC", "Central", "No. 45, Peradeniya Road, Kandy"),
            ("GLE", "Galle RDC", "Southern", "No. 8, Wakwella Road, Galle"),
        ]
        repository = DepotDjangoRepository()
        for code, name, region, address in seed_depots:
            depot = repository.get_by_code(code)
            if depot is None:
                depot = repository.save(
                    Depot(code=code, name=name, region=region, address=address)
                )
            depots.append(depot)
        self.stdout.write(self.style.SUCCESS("Creating depots... Done!"))
        return depots

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("RICE-001", "Samba Rice 5kg", "Groceries", Decimal("1450.00")),
            ("RICE-002", "Keeri Samba 5kg", "Groceries", Decimal("1750.00")),
            ("FLOUR-001", "Wheat Flour 1kg", "Groceries", Decimal("240.00")),
            ("SUGAR-001", "White Sugar 1kg", "Groceries", Decimal("280.00")),
            ("TEA-001", "Ceylon Black Tea 400g", "Beverages", Decimal("990.00")),
            ("TEA-002", "Green Tea 100 bags", "Beverages", Decimal("1250.00")),
            ("MILK-001", "Milk Powder 400g", "Dairy", Decimal("1080.00")),
            ("OIL-001", "Coconut Oil 1L", "Groceries", Decimal("820.00")),
            ("SOAP-001", "Bath Soap 4-pack", "Household", Decimal("460.00")),
            ("DET-001", "Washing Powder 1kg", "Household", Decimal("690.00")),
            ("BISC-001", "Cream Crackers 490g", "Snacks", Decimal("520.00")),
            ("SPICE-001", "Curry Powder 250g", "Groceries", Decimal("380.00")),
        ]
        for sku, name, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "description": category,
                    "price": price,
                    "status": ProductStatus.ACTIVE,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_stock(self, depots: list[Depot], products: list[Product]) -> int:
        """Opening stock goes through the ledger so every record has a trail."""
        self.stdout.write("Receiving opening stock...")
        ledger = build_inventory_ledger()
        receipts = 0
        for depot in depots:
            for product in products:
                if InventoryRecord.objects.filter(product=product, depot=depot).exists():
                    continue
                ledger.adjust(
                    product_id=product.id,
                    depot_id=depot.id,
                    kind=MovementKind.RECEIVED,
                    quantity=random.randint(20, 300),
                    reason="Opening stock",
                    reference="SEED",
                )
                receipts += 1
        self.stdout.write(self.style.SUCCESS("Receiving opening stock... Done!"))
        return receipts

    def _seed_drivers(self, depots: list[Depot]) -> int:
        self.stdout.write("Creating drivers...")
        User = get_user_model()
        service = build_driver_service()
        created = 0
        seed_drivers = [
            ("driver1", "B1234567", "WP-CAB-1234", "Lorry"),
            ("driver2", "B7654321", "CP-LJ-5678", "Van"),
        ]
        for index, (username, licence, vehicle, vehicle_type) in enumerate(seed_drivers):
            user = User.objects.get(username=username)
            if Driver.objects.filter(user=user).exists():
                continue
            service.create_driver(
                CreateDriverDTO(
                    user_id=user.id,
                    depot_id=depots[index % len(depots)].id,
                    licence_number=licence,
                    vehicle_number=vehicle,
                    vehicle_type=vehicle_type,
                )
            )
            created += 1
        self.stdout.write(self.style.SUCCESS("Creating drivers... Done!"))
        return created
