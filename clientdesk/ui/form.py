from __future__ import annotations

import logging
import re
import threading
from datetime import date, datetime, timezone
from typing import Any, Callable

from clientdesk.ui.api_client import ApiClientError, ClientApi

_LOG = logging.getLogger("clientdesk.ui.form")

FORM_FIELDS = ("code", "name", "email", "phone", "address", "birthDate", "pincode")
LIST_ROUTE = "/clients"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[+]?[0-9\s\-\(\)]{10,15}$")
_PINCODE_RE = re.compile(r"^\d{6}$")
_CODE_MAX = 2_147_483_647


def format_date_for_input(value: Any) -> str:
    """Render a stored date (``date``/``datetime`` or ISO text) as ``YYYY-MM-DD`` for a date input."""
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
        return date.fromisoformat(text).isoformat()
    except ValueError:
        return ""


def _blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def _field_error(name: str, value: Any) -> str | None:
    text = "" if value is None else str(value).strip()

    if name == "code":
        if _blank(value):
            return "code is required"
        try:
            number = int(text)
        except ValueError:
            return "Please enter a valid code format"
        if number < 1:
            return "code must be at least 1"
        if number > _CODE_MAX:
            return f"code cannot exceed {_CODE_MAX}"
        return None

    if name == "name":
        if not text:
            return "name is required"
        if len(text) < 2:
            return "name must be at least 2 characters"
        if len(text) > 100:
            return "name cannot exceed 100 characters"
        return None

    if name == "email":
        if not text:
            return "email is required"
        if not _EMAIL_RE.fullmatch(text):
            return "Please enter a valid email address"
        return None

    if name == "phone":
        if text and not _PHONE_RE.fullmatch(text):
            return "Please enter a valid phone format"
        return None

    if name == "address":
        if len(text) > 200:
            return "address cannot exceed 200 characters"
        return None

    if name == "birthDate":
        if not text:
            return None
        try:
            parsed = date.fromisoformat(text)
        except ValueError:
            return "Please enter a valid date"
        if parsed > datetime.now(timezone.utc).date():
            return "Birth date cannot be in the future"
        return None

    if name == "pincode":
        if not text:
            return "pincode is required"
        if not _PINCODE_RE.fullmatch(text):
            return "Pincode must be exactly 6 digits"
        return None

    return None


class ClientForm:
    """Create/edit form state for one client.

    Field errors are only reported for touched fields, like the browser form;
    ``submit`` touches everything first. ``message``/``is_error`` carry the
    operation banner, ``field_errors()`` the inline messages.
    """

    def __init__(
        self,
        api: ClientApi,
        *,
        client_id: str | None = None,
        navigate: Callable[[str], Any] | None = None,
        redirect_delay: float = 2.0,
    ):
        self.api = api
        self.client_id = client_id
        self.navigate = navigate or (lambda route: None)
        self.redirect_delay = redirect_delay
        self.values: dict[str, Any] = {name: "" for name in FORM_FIELDS}
        self.touched: set[str] = set()
        self.submitting = False
        self.loading = False
        self.message: str | None = None
        self.is_error = False
        self.closed = False
        self._redirect_timer: threading.Timer | None = None

    @classmethod
    def for_create(cls, api: ClientApi, **kwargs) -> "ClientForm":
        return cls(api, **kwargs)

    @classmethod
    def for_edit(cls, api: ClientApi, client_id: str, **kwargs) -> "ClientForm":
        form = cls(api, client_id=client_id, **kwargs)
        form.load()
        return form

    @property
    def is_edit(self) -> bool:
        return bool(self.client_id)

    def populate(self, record: dict[str, Any]) -> None:
        for name in FORM_FIELDS:
            value = record.get(name)
            if name == "birthDate":
                value = format_date_for_input(value)
            self.values[name] = "" if value is None else value

    def load(self) -> None:
        if not self.client_id:
            return
        self.loading = True
        self.message = None
        self.is_error = False
        try:
            self.populate(self.api.get(self.client_id))
        except ApiClientError as exc:
            _LOG.error("Error loading client: %s", exc.message)
            self.message = exc.message or "Failed to load client"
            self.is_error = True
        finally:
            self.loading = False

    def set(self, name: str, value: Any) -> None:
        if name not in self.values:
            raise KeyError(name)
        self.values[name] = value
        self.touched.add(name)

    def validate(self) -> dict[str, str]:
        errors = {}
        for name in FORM_FIELDS:
            error = _field_error(name, self.values.get(name))
            if error:
                errors[name] = error
        return errors

    @property
    def valid(self) -> bool:
        return not self.validate()

    def field_error(self, name: str) -> str | None:
        if name not in self.touched:
            return None
        return self.validate().get(name)

    def field_errors(self) -> dict[str, str]:
        return {name: msg for name, msg in self.validate().items() if name in self.touched}

    def payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for name in FORM_FIELDS:
            value = self.values.get(name)
            if _blank(value):
                continue
            data[name] = value.strip() if isinstance(value, str) else value
        if "code" in data:
            data["code"] = int(data["code"])
        return data

    def submit(self) -> bool:
        if self.submitting:
            return False
        self.message = None
        self.is_error = False
        self.touched.update(FORM_FIELDS)
        if not self.valid:
            return False

        self.submitting = True
        self.loading = True
        try:
            if self.is_edit:
                self.api.update(self.client_id, self.payload())
                self.message = "Client successfully updated!"
            else:
                self.api.create(self.payload())
                self.values = {name: "" for name in FORM_FIELDS}
                self.touched.clear()
                self.message = "Client successfully created!"
        except ApiClientError as exc:
            _LOG.error("Error saving client: %s", exc.message)
            self.message = exc.message or "Failed to save client"
            self.is_error = True
            return False
        finally:
            self.loading = False
            self.submitting = False

        self._schedule_redirect()
        return True

    def cancel(self) -> None:
        self.navigate(LIST_ROUTE)

    def close(self) -> None:
        """Teardown: a pending redirect is cancelled and never fires."""
        self.closed = True
        if self._redirect_timer is not None:
            self._redirect_timer.cancel()
            self._redirect_timer = None

    def _redirect(self) -> None:
        if not self.closed:
            self.navigate(LIST_ROUTE)

    def _schedule_redirect(self) -> None:
        if self.redirect_delay <= 0:
            self._redirect()
            return
        if self._redirect_timer is not None:
            self._redirect_timer.cancel()
        self._redirect_timer = threading.Timer(self.redirect_delay, self._redirect)
        self._redirect_timer.daemon = True
        self._redirect_timer.start()
