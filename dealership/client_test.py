import os
import tempfile
import unittest
from unittest.mock import MagicMock

import requests

from dealership import client as client_module
from dealership.client import DealershipApiError, DealershipClient, validate_photo_file


def _response(status_code, payload=None, content=None):
    response = MagicMock()
    response.status_code = status_code
    if payload is not None:
        response.json.return_value = payload
        response.content = b"{}"
    else:
        response.json.side_effect = ValueError("no json")
        response.content = content or b""
    return response


class DealershipClientTest(unittest.TestCase):

    def setUp(self):
        client_module._logout_guard_until = 0.0
        self.session = MagicMock()
        self.on_unauthorized = MagicMock()
        self.client = DealershipClient(
            "http://bff.test/", session=self.session, on_unauthorized=self.on_unauthorized
        )

    def test_urls_are_under_api(self):
        self.session.request.return_value = _response(200, [{"id": 1}])
        self.assertEqual(self.client.list_vehicles(), [{"id": 1}])
        method, url = self.session.request.call_args.args
        self.assertEqual((method, url), ("GET", "http://bff.test/api/vehicles"))

    def test_error_message_from_payload(self):
        self.session.request.return_value = _response(400, {"message": "Vehicle is required"})
        with self.assertRaises(DealershipApiError) as ctx:
            self.client.create_sale({})
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, "Vehicle is required")

    def test_error_message_fallback(self):
        self.session.request.return_value = _response(500)
        with self.assertRaises(DealershipApiError) as ctx:
            self.client.list_finance_companies()
        self.assertEqual(ctx.exception.message, "Request failed (500)")

    def test_get_vehicle_not_found_is_none(self):
        self.session.request.return_value = _response(404, {"message": "Vehicle not found"})
        self.assertIsNone(self.client.get_vehicle(99))

    def test_unauthorized_logs_out_once(self):
        self.session.request.return_value = _response(401, {"message": "Unauthorized"})

        for _ in range(2):
            with self.assertRaises(DealershipApiError):
                self.client.list_vehicles()

        self.session.post.assert_called_once_with(
            "http://bff.test/api/auth/logout", timeout=client_module.REQUEST_TIMEOUT
        )
        self.session.cookies.clear.assert_called_once()
        self.on_unauthorized.assert_called_once()

    def test_logout_failure_still_notifies(self):
        self.session.request.return_value = _response(401)
        self.session.post.side_effect = requests.ConnectionError("down")

        with self.assertRaises(DealershipApiError):
            self.client.list_vehicles()
        self.on_unauthorized.assert_called_once()

    def test_search_customers_skips_blank_phone(self):
        self.assertEqual(self.client.search_customers_by_phone("  "), [])
        self.session.request.assert_not_called()

    def test_manual_bill_pdf_url(self):
        self.assertEqual(
            self.client.manual_bill_pdf_url("MB 1"),
            "http://bff.test/api/manual-bills/MB%201/pdf?download=true&inline=1",
        )


class ValidatePhotoFileTest(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.mkdtemp()

    def tearDown(self):
        for name in os.listdir(self.directory):
            os.remove(os.path.join(self.directory, name))
        os.rmdir(self.directory)

    def _write(self, name, size):
        path = os.path.join(self.directory, name)
        with open(path, "wb") as handle:
            handle.write(b"\0" * size)
        return path

    def test_accepts_small_jpeg(self):
        self.assertEqual(validate_photo_file(self._write("car.jpg", 10)), "image/jpeg")

    def test_rejects_other_types(self):
        with self.assertRaises(ValueError) as ctx:
            validate_photo_file(self._write("notes.txt", 10))
        self.assertEqual(str(ctx.exception), "Only JPEG, PNG, or WebP images are allowed.")

    def test_rejects_large_files(self):
        path = self._write("big.png", client_module.MAX_IMAGE_BYTES + 1)
        with self.assertRaises(ValueError) as ctx:
            validate_photo_file(path)
        self.assertEqual(str(ctx.exception), "Image size must be 2MB or less.")


if __name__ == "__main__":
    unittest.main()
