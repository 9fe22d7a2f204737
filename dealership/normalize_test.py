import unittest

from dealership import normalize
from dealership.json_utils import to_json_dict
from dealership.types import PaymentMode, VehicleStatus


class PickFieldTest(unittest.TestCase):

    def test_exact_spelling_wins_in_key_order(self):
        row = {"registration_number": "KA02", "registrationNumber": "KA01"}
        self.assertEqual(
            normalize.pick_field(row, normalize.REGISTRATION_KEYS), "KA01"
        )

    def test_loose_match_ignores_case_and_punctuation(self):
        row = {"Registration_No": "TN09AB1234"}
        self.assertEqual(
            normalize.pick_field(row, normalize.REGISTRATION_KEYS), "TN09AB1234"
        )

    def test_null_values_are_skipped(self):
        row = {"sellingPrice": None, "salePrice": 450000}
        self.assertEqual(
            normalize.pick_field(row, normalize.SELLING_PRICE_KEYS), 450000
        )


class ScalarCoercionTest(unittest.TestCase):

    def test_as_number_strips_formatting(self):
        self.assertEqual(normalize.as_number("₹1,25,000"), 125000)
        self.assertEqual(normalize.as_number("12.5"), 12.5)
        self.assertEqual(normalize.as_number(42), 42)

    def test_as_number_falls_back(self):
        self.assertEqual(normalize.as_number("abc"), 0)
        self.assertIsNone(normalize.as_number(None, None))
        self.assertEqual(normalize.as_number(True), 0)

    def test_as_string_renders_integral_floats_without_fraction(self):
        self.assertEqual(normalize.as_string(2020.0), "2020")
        self.assertEqual(normalize.as_string(7), "7")
        self.assertEqual(normalize.as_string(None), "")
        self.assertEqual(normalize.as_string(False), "")

    def test_to_boolean(self):
        self.assertTrue(normalize.to_boolean("Yes"))
        self.assertFalse(normalize.to_boolean(0))
        self.assertIsNone(normalize.to_boolean("maybe"))

    def test_normalize_status_and_payment_mode(self):
        self.assertEqual(normalize.normalize_status(2), VehicleStatus.SOLD)
        self.assertEqual(normalize.normalize_status("in_stock"), VehicleStatus.AVAILABLE)
        self.assertIsNone(normalize.normalize_status("reserved"))
        self.assertEqual(normalize.normalize_payment_mode(3), PaymentMode.FINANCE)
        self.assertEqual(normalize.normalize_payment_mode("upi"), PaymentMode.UPI)
        self.assertEqual(normalize.normalize_payment_mode("cheque"), PaymentMode.CASH)

    def test_to_status_value(self):
        self.assertEqual(normalize.to_status_value("Sold"), 2)
        self.assertEqual(normalize.to_status_value("1"), 1)
        self.assertIsNone(normalize.to_status_value("Lost"))


class ExtractRowsTest(unittest.TestCase):

    def test_bare_list_keeps_only_objects(self):
        self.assertEqual(normalize.extract_rows([{"id": 1}, 3, "x"]), [{"id": 1}])

    def test_envelopes(self):
        self.assertEqual(normalize.extract_rows({"items": [{"id": 2}]}), [{"id": 2}])
        self.assertEqual(normalize.extract_rows({"data": []}), [])

    def test_unrecognized_payload(self):
        self.assertIsNone(normalize.extract_rows({"total": 3}))
        self.assertIsNone(normalize.extract_rows(None))


class VehicleNormalizationTest(unittest.TestCase):

    def test_aliases_and_status(self):
        vehicle = normalize.normalize_vehicle(
            {
                "vehicleId": 12,
                "make": "Honda",
                "modelName": "City",
                "manufactureYear": "2019",
                "regNumber": "KA01AB1234",
                "color": "White",
                "salePrice": "6,50,000",
                "statusId": 2,
            }
        )
        self.assertEqual(vehicle.id, "12")
        self.assertEqual(vehicle.brand, "Honda")
        self.assertEqual(vehicle.model, "City")
        self.assertEqual(vehicle.year, 2019)
        self.assertEqual(vehicle.registration_number, "KA01AB1234")
        self.assertEqual(vehicle.colour, "White")
        self.assertEqual(vehicle.selling_price, 650000)
        self.assertEqual(vehicle.status, VehicleStatus.SOLD)

    def test_flags_decide_status_without_status_field(self):
        self.assertEqual(
            normalize.normalize_vehicle({"isAvailable": False}).status, VehicleStatus.SOLD
        )
        self.assertEqual(
            normalize.normalize_vehicle({"is_sold": "false"}).status, VehicleStatus.AVAILABLE
        )
        self.assertEqual(normalize.normalize_vehicle({}).status, VehicleStatus.AVAILABLE)

    def test_wire_shape_is_camel_case(self):
        payload = to_json_dict(normalize.normalize_vehicle({"id": 1, "status": "Sold"}))
        self.assertEqual(payload["status"], "SOLD")
        self.assertIn("registrationNumber", payload)
        self.assertIn("sellingPrice", payload)
        self.assertNotIn("selling_price", payload)


class SaleNormalizationTest(unittest.TestCase):

    def test_nested_vehicle_supplies_id_and_registration(self):
        sale = normalize.normalize_sale(
            {
                "billNo": 7,
                "buyerName": "Ravi",
                "paymentMode": 2,
                "vehicle": {"id": 5, "registrationNumber": "KA05"},
            }
        )
        self.assertEqual(sale.bill_number, "7")
        self.assertEqual(sale.customer_name, "Ravi")
        self.assertEqual(sale.payment_mode, PaymentMode.UPI)
        self.assertEqual(sale.vehicle_id, "5")
        self.assertEqual(sale.registration_number, "KA05")

    def test_sale_detail_from_flat_row(self):
        detail = normalize.normalize_sale_detail_from_flat(
            {
                "billNumber": 12,
                "vehicleId": 3,
                "brand": "Honda",
                "model": "City",
                "registrationNumber": "KA03",
                "cashAmount": 100000,
                "upiAmount": "50,000",
                "paymentMode": 2,
                "customer": {"name": "Ravi", "phone": "9876543210"},
                "profit": 15000,
            }
        )
        self.assertEqual(detail.id, "12")
        self.assertEqual(detail.bill_number, "12")
        self.assertEqual(detail.vehicle_id, "3")
        self.assertEqual(detail.vehicle.brand, "Honda")
        self.assertEqual(detail.vehicle.registration_number, "KA03")
        self.assertEqual(detail.customer_name, "Ravi")
        self.assertEqual(detail.phone, "9876543210")
        self.assertEqual(detail.total_payment, 150000)
        self.assertEqual(detail.payment_mode, PaymentMode.UPI)
        self.assertEqual(detail.profit, 15000)

    def test_sale_detail_prefers_total_received(self):
        detail = normalize.normalize_sale_detail_from_flat(
            {"billNumber": 1, "totalReceived": 90000, "cashAmount": 10}
        )
        self.assertEqual(detail.total_payment, 90000)

    def test_sale_detail_fills_nested_vehicle_gaps_from_flat_columns(self):
        detail = normalize.normalize_sale_detail_from_flat(
            {
                "billNumber": 4,
                "vehicle": {"id": 9, "brand": "Bajaj"},
                "vehicleModel": "Pulsar",
            }
        )
        self.assertEqual(detail.vehicle.brand, "Bajaj")
        self.assertEqual(detail.vehicle.model, "Pulsar")
        self.assertEqual(detail.vehicle_id, "9")


class OtherRecordsTest(unittest.TestCase):

    def test_search_result_defaults_type(self):
        result = normalize.to_search_result({"billNo": "15", "mobile": "999"})
        self.assertEqual(result.type, "Sale")
        self.assertEqual(result.bill_number, 15)
        self.assertEqual(result.customer_phone, "999")

    def test_finance_company_and_expense(self):
        company = normalize.to_finance_company({"financeCompanyId": "4", "financeCompanyName": "HDFC"})
        self.assertEqual((company.id, company.name), (4, "HDFC"))
        expense = normalize.to_expense({"expense_id": 2, "vehicle_id": 8, "expense_type": "Tyres", "amount": "1,500"})
        self.assertEqual(expense.amount, 1500)
        self.assertEqual(expense.expense_type, "Tyres")

    def test_customer_nullable_fields(self):
        customer = normalize.normalize_customer({"customerId": 3, "name": "Asha", "address": "  "})
        self.assertEqual(customer.id, "3")
        self.assertIsNone(customer.address)
        self.assertIsNone(customer.photo_url)

    def test_delivery_note_settings(self):
        settings = normalize.normalize_delivery_note_settings({"shopName": " SRS Motors ", "gstNumber": ""})
        self.assertEqual(settings.shop_name, "SRS Motors")
        self.assertIsNone(settings.gst_number)


if __name__ == "__main__":
    unittest.main()
