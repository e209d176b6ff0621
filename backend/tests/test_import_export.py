"""
Import and export tests.

Verifies:
- Export formats (JSON and both CSV flavours)
- Products CSV export -> import round trip
- Whole-file rejection: a bad row writes nothing
- Backups replace products, sales and settings together
"""

import json
import pytest
from datetime import datetime
from decimal import Decimal

from stockbook.records import Product, Sale, SaleItem, Settings
from stockbook.services import export_service
from stockbook.services.document_store import PRODUCTS, SALES, SETTINGS
from stockbook.services.import_service import DataImportError, ImportKind, import_file
from stockbook.services.sales_service import Ledger
from stockbook.services.settings_service import get_settings
from stockbook.time_utils import local_day


def _sale():
    item = SaleItem(1, 'Mouse "Pro"', Decimal("19.5"), 2, Decimal("39.0"))
    return Sale(7, datetime(2024, 3, 1, 10, 0, 0), (item,), Decimal("39.0"), None)


class TestExport:
    def test_products_csv_quotes_text_and_formats_price(self):
        products = [Product(1, 'Mouse "Pro"', "Accessories", Decimal("20.00"), 4)]

        raw = export_service.products_to_csv(products)
        fixed = export_service.products_to_csv(products, "fixed")

        assert raw == 'ID,Name,Category,Price,Stock\n1,"Mouse ""Pro""","Accessories",20,4\n'
        assert fixed.splitlines()[1] == '1,"Mouse ""Pro""","Accessories",20.00,4'

    def test_products_csv_rejects_unknown_price_format(self):
        with pytest.raises(ValueError):
            export_service.products_to_csv([], "cents")

    def test_sales_csv_variants(self):
        day = local_day(datetime(2024, 3, 1, 10, 0, 0)).isoformat()

        plain = export_service.sales_to_csv([_sale()])
        with_items = export_service.sales_to_csv([_sale()], include_items=True)

        assert plain == f'ID,Date,Customer,Total Price\n7,{day},"Walk-in Customer",39.00\n'
        assert with_items == f'ID,Date,Customer,Total Price,Items\n7,"{day}","Walk-in Customer",39,1\n'

    def test_backup_json_shape(self):
        body = json.loads(export_service.backup_to_json([], [_sale()], Settings()))
        assert set(body) == {"products", "sales", "settings"}
        assert body["sales"][0]["date"] == "2024-03-01T10:00:00Z"
        assert body["sales"][0]["items"][0]["productName"] == 'Mouse "Pro"'
        assert body["settings"]["companyName"] == "Inventory System"


class TestProductsCsvImport:
    def test_round_trip(self, store, catalog):
        catalog.add({"name": 'Cable, USB "C"', "category": "Accessories", "price": "9.99", "stock": 12})
        catalog.add({"name": "Desk", "category": "Furniture", "price": 150, "stock": 0})
        exported = export_service.products_to_csv(catalog.all())
        before = [(p.name, p.category, p.price, p.stock) for p in catalog.all()]

        store.set(PRODUCTS, [])
        result = import_file(store, ImportKind.PRODUCTS, exported, "csv")

        assert result == {"kind": "products", "mode": "append", "imported": 2}
        assert [(p.name, p.category, p.price, p.stock) for p in catalog.all()] == before

    def test_minimal_header_generates_ids_and_category(self, store, catalog):
        import_file(store, "products", "Name,Price,Stock\nWidget,2.50,3\nGadget,4,1\n", "csv")

        products = catalog.all()
        assert [p.name for p in products] == ["Widget", "Gadget"]
        assert {p.category for p in products} == {"Uncategorized"}
        assert len({p.id for p in products}) == 2

    def test_appends_with_fresh_ids(self, store, catalog, product):
        import_file(store, "products", "ID,Name,Price,Stock\n1,Widget,20,10\n", "csv")

        products = catalog.all()
        assert len(products) == 2
        assert products[1].id > product.id

    def test_header_in_any_order_with_bom(self, store, catalog):
        import_file(store, "products", "\ufeffStock,Category,Product Name,Unit Price\n3,Audio,Speaker,10\n", "csv")
        assert catalog.all()[0].name == "Speaker"
        assert catalog.all()[0].price == Decimal("10")

    def test_missing_column(self, store):
        with pytest.raises(DataImportError):
            import_file(store, "products", "Name,Stock\nWidget,3\n", "csv")

    def test_bad_row_rejects_whole_file(self, store, catalog, product):
        content = "Name,Price,Stock\nGood,1,1\nBad,abc,1\n,2,2\n"
        with pytest.raises(DataImportError) as exc:
            import_file(store, "products", content, "csv")

        assert [e.split(":")[0] for e in exc.value.errors] == ["Row 3", "Row 4"]
        assert [p.id for p in catalog.all()] == [product.id]

    @pytest.mark.parametrize("stock", ["2.9", "1e3"])
    def test_non_integer_stock_rejects_whole_file(self, store, catalog, product, stock):
        content = f"Name,Price,Stock\nGood,1,1\nWidget,1,{stock}\n"
        with pytest.raises(DataImportError) as exc:
            import_file(store, "products", content, "csv")

        assert exc.value.errors == ["Row 3: stock must be an integer"]
        assert [p.id for p in catalog.all()] == [product.id]


class TestJsonImport:
    def test_products_json_replaces_catalog(self, store, catalog, product):
        data = [{"id": 3, "name": "A", "category": "X", "price": 1.5, "stock": -2},
                {"id": 3, "name": "B", "category": "X", "price": 2, "stock": 1}]
        result = import_file(store, "products", json.dumps(data))

        products = catalog.all()
        assert result["mode"] == "replace"
        assert [p.name for p in products] == ["A", "B"]
        assert products[0].id == 3 and products[1].id != 3
        assert products[0].stock == -2

    def test_sales_json_recomputes_totals(self, store):
        data = [{
            "id": 11,
            "date": "2024-03-01T10:00:00.123Z",
            "items": [{"productId": 1, "productName": "A", "price": 0.1, "quantity": 3, "total": 0.30000000000000004}],
            "totalPrice": 0.30000000000000004,
        }]
        import_file(store, "sales", json.dumps(data))

        sale = Ledger(store).get_sale(11)
        assert sale.total_price == Decimal("0.3")
        assert sale.date == datetime(2024, 3, 1, 10, 0, 0)

    def test_sales_json_rejects_mismatched_total(self, store):
        data = [{"id": 1, "date": "2024-03-01T10:00:00Z",
                 "items": [{"productId": 1, "productName": "A", "price": 5, "quantity": 2}],
                 "totalPrice": 11}]
        with pytest.raises(DataImportError):
            import_file(store, "sales", json.dumps(data))
        assert not store.has(SALES)

    def test_invalid_json(self, store):
        with pytest.raises(DataImportError):
            import_file(store, "products", "{oops")

    def test_unknown_kind_and_format(self, store):
        with pytest.raises(DataImportError):
            import_file(store, "customers", "[]")
        with pytest.raises(DataImportError):
            import_file(store, "sales", "a,b", "csv")


class TestBackupImport:
    def test_backup_replaces_everything(self, store, catalog, product):
        store.set(SETTINGS, {"companyName": "Old", "lowStockThreshold": 5, "darkMode": False})
        backup = {
            "products": [{"id": 1, "name": "A", "category": "X", "price": 3, "stock": 2}],
            "sales": [],
            "settings": {"companyName": "Restored", "darkMode": True},
        }
        result = import_file(store, ImportKind.BACKUP, json.dumps(backup))

        assert result["products"] == 1 and result["settings"] is True
        assert [p.name for p in catalog.all()] == ["A"]
        assert store.get_list(SALES) == []
        assert get_settings(store).company_name == "Restored"
        assert get_settings(store).dark_mode is True

    def test_backup_without_sales_or_settings_keeps_them(self, store):
        store.set(SETTINGS, {"companyName": "Keep"})
        store.set(SALES, [{"id": 5, "date": "2024-01-01T00:00:00Z", "items": [], "totalPrice": 0}])
        result = import_file(store, "backup", json.dumps({"products": []}))

        assert result["sales"] == 0 and result["settings"] is False
        assert get_settings(store).company_name == "Keep"
        assert [row["id"] for row in store.get_list(SALES)] == [5]

    def test_backup_needs_products_list(self, store):
        with pytest.raises(DataImportError):
            import_file(store, "backup", json.dumps([{"name": "A"}]))

    def test_invalid_backup_writes_nothing(self, store, catalog, product):
        backup = {"products": [{"name": "A", "category": "X", "price": 1, "stock": 1}],
                  "sales": [{"id": 1, "items": []}]}
        with pytest.raises(DataImportError):
            import_file(store, "backup", json.dumps(backup))
        assert [p.id for p in catalog.all()] == [product.id]
