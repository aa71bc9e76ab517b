import os
import unittest
from datetime import date, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from clientdesk.core.errors import ApiError
from clientdesk.schemas.auth import UserLogin, UserRegister
from clientdesk.schemas.clients import ClientCreate, ClientUpdate
from clientdesk.services.validation import validate_payload


def _fields(exc: ApiError) -> dict[str, str]:
    return {item["field"]: item["message"] for item in exc.details or []}


class ClientValidationTests(unittest.TestCase):
    def _valid(self, **overrides):
        payload = {
            "code": 1,
            "name": "John Doe",
            "email": "John@Example.com",
            "phone": "1234567890",
            "address": "123 Main St",
            "status": "active",
            "birthDate": "1990-01-01",
            "pincode": "123456",
        }
        payload.update(overrides)
        return payload

    def test_valid_payload_is_normalized(self):
        model = validate_payload(ClientCreate, self._valid())
        self.assertEqual(model.email, "john@example.com")
        self.assertEqual(model.birth_date, date(1990, 1, 1))
        self.assertEqual(model.code, 1)

    def test_defaults_and_unknown_keys(self):
        payload = self._valid(unknownField="x", anotherUnknown="y")
        payload.pop("status")
        model = validate_payload(ClientCreate, payload)
        self.assertEqual(model.status, "active")
        dumped = model.model_dump()
        self.assertNotIn("unknownField", dumped)
        self.assertNotIn("anotherUnknown", dumped)

    def test_all_errors_are_collected(self):
        with self.assertRaises(ApiError) as ctx:
            validate_payload(ClientCreate, {"name": "J", "phone": "123", "status": "invalid-status"})
        exc = ctx.exception
        self.assertEqual(exc.status_code, 400)
        self.assertEqual(exc.error, "Validation error")
        self.assertEqual(exc.message, "Request validation failed")
        fields = _fields(exc)
        for name in ("code", "email", "pincode", "name", "phone", "status"):
            self.assertIn(name, fields)
        self.assertIn("required", fields["code"].lower())
        self.assertIn("10", fields["phone"])
        self.assertIn("active", fields["status"])

    def test_invalid_email(self):
        with self.assertRaises(ApiError) as ctx:
            validate_payload(ClientCreate, self._valid(email="invalid-email"))
        self.assertIn("valid email", _fields(ctx.exception)["email"])

    def test_pincode_must_be_six_digits(self):
        for bad in ("12345", "1234567", "12a456"):
            with self.assertRaises(ApiError) as ctx:
                validate_payload(ClientCreate, self._valid(pincode=bad))
            self.assertIn("pincode", _fields(ctx.exception))
        self.assertEqual(validate_payload(ClientCreate, self._valid(pincode="000001")).pincode, "000001")

    def test_birth_date_not_in_future(self):
        tomorrow = (date.today() + timedelta(days=2)).isoformat()
        with self.assertRaises(ApiError) as ctx:
            validate_payload(ClientCreate, self._valid(birthDate=tomorrow))
        self.assertIn("future", _fields(ctx.exception)["birthDate"])

    def test_phone_pattern(self):
        with self.assertRaises(ApiError) as ctx:
            validate_payload(ClientCreate, self._valid(phone="12345abcde"))
        self.assertIn("phone", _fields(ctx.exception))
        model = validate_payload(ClientCreate, self._valid(phone="+1 (555) 123-45"))
        self.assertEqual(model.phone, "+1 (555) 123-45")

    def test_code_must_be_positive_integer(self):
        for bad in (0, -3, 1.5, "abc"):
            with self.assertRaises(ApiError):
                validate_payload(ClientCreate, self._valid(code=bad))

    def test_name_and_address_bounds(self):
        with self.assertRaises(ApiError):
            validate_payload(ClientCreate, self._valid(name="x" * 101))
        with self.assertRaises(ApiError):
            validate_payload(ClientCreate, self._valid(address="x" * 201))
        self.assertEqual(len(validate_payload(ClientCreate, self._valid(name="x" * 100)).name), 100)

    def test_blank_optional_fields_become_empty(self):
        model = validate_payload(ClientCreate, self._valid(phone="", address="", birthDate=""))
        self.assertIsNone(model.phone)
        self.assertIsNone(model.address)
        self.assertIsNone(model.birth_date)

    def test_update_is_partial(self):
        model = validate_payload(ClientUpdate, {"name": "New Name"})
        self.assertEqual(model.changes(), {"name": "New Name"})

    def test_update_rejects_null_required_fields(self):
        with self.assertRaises(ApiError) as ctx:
            validate_payload(ClientUpdate, {"name": None, "email": None})
        fields = _fields(ctx.exception)
        self.assertIn("name", fields)
        self.assertIn("email", fields)

    def test_update_keeps_constraints(self):
        with self.assertRaises(ApiError) as ctx:
            validate_payload(ClientUpdate, {"pincode": "12", "email": "bad"})
        self.assertEqual(set(_fields(ctx.exception)), {"pincode", "email"})


class AuthValidationTests(unittest.TestCase):
    def test_register_defaults_to_user_role(self):
        model = validate_payload(UserRegister, {"username": "alice", "email": "A@X.com", "password": "secret1"})
        self.assertEqual(model.role, "user")
        self.assertEqual(model.email, "a@x.com")

    def test_register_rules(self):
        with self.assertRaises(ApiError) as ctx:
            validate_payload(
                UserRegister,
                {"username": "al", "email": "nope", "password": "123", "role": "root"},
            )
        self.assertEqual(set(_fields(ctx.exception)), {"username", "email", "password", "role"})

    def test_login_requires_both_fields(self):
        with self.assertRaises(ApiError) as ctx:
            validate_payload(UserLogin, {})
        self.assertEqual(set(_fields(ctx.exception)), {"email", "password"})
