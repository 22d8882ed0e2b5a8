import unittest

from fakes import make_medicine

from fastapi.testclient import TestClient

from medpos.database import Base, SessionLocal, engine
from medpos.main import app
from medpos.services import user_service

PASSWORDS = {"admin": "admin-pass", "counter": "counter-pass", "warehouse": "warehouse-pass"}


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            for role, password in PASSWORDS.items():
                user_service.create_user(db, username=role, password=password, role=role)
            db.add(make_medicine(1, name="Paracetamol", quantity=10))
            db.commit()
        finally:
            db.close()
        self.client = TestClient(app)
        self.tokens = {}

    def headers(self, role):
        if role not in self.tokens:
            response = self.client.post(
                "/auth/login", json={"username": role, "password": PASSWORDS[role]}
            )
            self.assertEqual(response.status_code, 200, response.text)
            self.tokens[role] = response.json()["access_token"]
        return {"Authorization": f"Bearer {self.tokens[role]}"}


class AuthApiTest(ApiTestCase):
    def test_health_is_public(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_login_returns_user_and_token(self):
        response = self.client.post("/auth/login", json={"username": "Counter", "password": "counter-pass"})
        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["token_type"], "bearer")
        self.assertEqual(body["user"]["role"], "counter")

        me = self.client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        self.assertEqual(me.json()["username"], "counter")

    def test_bad_credentials_use_error_payload(self):
        response = self.client.post("/auth/login", json={"username": "admin", "password": "wrong-pass"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers["www-authenticate"], "Bearer")
        self.assertEqual(
            response.json(),
            {"success": False, "message": "Invalid username or password", "errors": []},
        )

    def test_missing_token(self):
        response = self.client.get("/medicines")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()["success"])

    def test_admin_cannot_deactivate_self(self):
        me = self.client.get("/auth/me", headers=self.headers("admin")).json()
        response = self.client.delete(f"/users/{me['id']}", headers=self.headers("admin"))
        self.assertEqual(response.status_code, 400)

    def test_user_management_is_admin_only(self):
        response = self.client.get("/users", headers=self.headers("counter"))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.get("/users", headers=self.headers("admin")).status_code, 200)


class CatalogApiTest(ApiTestCase):
    def test_counter_cannot_change_catalog(self):
        response = self.client.patch(
            "/medicines/1/stock", json={"quantity": 99}, headers=self.headers("counter")
        )
        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()["success"])

    def test_warehouse_creates_medicine(self):
        response = self.client.post(
            "/medicines",
            json={
                "name": "Cetirizine",
                "manufacturer": "Acme Labs",
                "retailPrice": 12.5,
                "tradePrice": 8,
                "quantity": 30,
                "expiryDate": "2099-12-31",
            },
            headers=self.headers("warehouse"),
        )
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["retail_price"], 12.5)
        self.assertEqual(body["reorder_threshold"], 10)

        found = self.client.get("/medicines/search", params={"q": "ceti"}, headers=self.headers("counter"))
        self.assertEqual([m["name"] for m in found.json()], ["Cetirizine"])

    def test_missing_medicine_is_404(self):
        response = self.client.get("/medicines/404", headers=self.headers("counter"))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Medicine not found")

    def test_csv_export(self):
        response = self.client.get("/medicines/export.csv", headers=self.headers("warehouse"))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        self.assertIn('"Paracetamol"', response.text)


class OrderApiTest(ApiTestCase):
    def test_counter_sells_and_prints_receipt(self):
        response = self.client.post(
            "/orders",
            json={
                "items": [{"medicineId": 1, "quantity": 2, "discount": 10}],
                "customer": {"name": "Asha"},
                "payment": {"method": "card", "taxPercent": 5},
            },
            headers=self.headers("counter"),
        )
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertRegex(body["order_number"], r"^ORD-\d{8}-[0-9A-F]{6}$")
        self.assertEqual(body["order"]["subtotal"], 190.0)
        self.assertEqual(body["order"]["tax_amount"], 9.5)
        self.assertEqual(body["order"]["total"], 199.5)
        self.assertEqual(body["order"]["items"][0]["name"], "Paracetamol")

        medicine = self.client.get("/medicines/1", headers=self.headers("counter")).json()
        self.assertEqual(medicine["quantity"], 8)

        receipt = self.client.get(f"/orders/{body['order_id']}/receipt", headers=self.headers("counter"))
        self.assertEqual(receipt.status_code, 200)
        self.assertEqual(receipt.headers["content-type"], "application/pdf")
        self.assertTrue(receipt.content.startswith(b"%PDF"))

    def test_short_stock_reports_every_problem(self):
        response = self.client.post(
            "/orders",
            json={"items": [{"medicineId": 1, "quantity": 50}, {"medicineId": 77, "quantity": 1}]},
            headers=self.headers("counter"),
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["message"], "Insufficient inventory")
        self.assertEqual(
            body["errors"],
            ["Paracetamol: requested 50, available 10", "Medicine with ID 77 not found"],
        )

    def test_warehouse_cannot_sell(self):
        response = self.client.post(
            "/orders",
            json={"items": [{"medicineId": 1, "quantity": 1}]},
            headers=self.headers("warehouse"),
        )
        self.assertEqual(response.status_code, 403)

    def test_reports_are_admin_only(self):
        self.assertEqual(
            self.client.get("/orders/sales-report", headers=self.headers("counter")).status_code, 403
        )
        self.assertEqual(
            self.client.get("/dashboard/stats", headers=self.headers("counter")).status_code, 403
        )
        stats = self.client.get("/dashboard/stats", headers=self.headers("admin"))
        self.assertEqual(stats.status_code, 200, stats.text)
        self.assertEqual(stats.json()["total_users"], 3)

class ProcurementApiTest(ApiTestCase):
    def test_warehouse_orders_and_receives_stock(self):
        warehouse = self.headers("warehouse")
        supplier = self.client.post("/suppliers", json={"name": "City Pharma"}, headers=warehouse)
        self.assertEqual(supplier.status_code, 201, supplier.text)

        created = self.client.post(
            "/purchase-orders",
            json={
                "supplierId": supplier.json()["id"],
                "items": [{"medicineId": 1, "quantity": 5, "unitPrice": 40}],
            },
            headers=warehouse,
        )
        self.assertEqual(created.status_code, 201, created.text)
        purchase_order = created.json()
        self.assertEqual(purchase_order["status"], "pending")
        self.assertEqual(purchase_order["total"], 200.0)

        url = f"/purchase-orders/{purchase_order['id']}/receive"
        item_id = purchase_order["items"][0]["id"]
        received = self.client.post(
            url,
            json={"items": [{"itemId": item_id, "receivedQuantity": 5, "batchNumber": "PCM-9"}]},
            headers=warehouse,
        )
        self.assertEqual(received.status_code, 200, received.text)
        self.assertEqual(received.json()["status"], "received")

        medicine = self.client.get("/medicines/1", headers=warehouse).json()
        self.assertEqual(medicine["quantity"], 15)
        self.assertEqual(medicine["batch_number"], "PCM-9")

        again = self.client.post(url, json={"items": []}, headers=warehouse)
        self.assertEqual(again.status_code, 400)
        self.assertEqual(self.client.get("/medicines/1", headers=warehouse).json()["quantity"], 15)

    def test_counter_has_no_procurement_access(self):
        response = self.client.get("/suppliers", headers=self.headers("counter"))
        self.assertEqual(response.status_code, 403)



if __name__ == "__main__":
    unittest.main()
