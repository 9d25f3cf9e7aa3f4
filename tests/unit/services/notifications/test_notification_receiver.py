"""
Tests para el receptor de notificaciones de Riskified.
"""

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from riskified_sdk.core.config import Settings
from riskified_sdk.domain.models import Notification, NotificationStatus
from riskified_sdk.services.notifications import NotificationReceiver
from riskified_sdk.utils.error_handler import GENERIC_ERROR_MESSAGE, NotificationReceiverException
from riskified_sdk.utils.signature import calc_hmac

AUTH_TOKEN = "receiver-secret"
SHOP_DOMAIN = "shop.example.com"
PATH = "/riskified/notifications"


def signed(payload, secret=AUTH_TOKEN):
    """Cuerpo JSON y cabeceras firmadas como las envía Riskified."""
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return body, {"X-RISKIFIED-HMAC-SHA256": calc_hmac(body, secret), "Content-Type": "application/json"}


def make_receiver(callback, **kwargs):
    """Receptor escuchando en localhost."""
    options = {"host": "127.0.0.1", "port": 0, "path": PATH}
    options.update(kwargs)
    return NotificationReceiver(callback, AUTH_TOKEN, **options)


@pytest.fixture
def callback():
    """Callback síncrono simulado."""
    return MagicMock(return_value=None)


@pytest.fixture
def http(callback):
    """Cliente de prueba sobre la aplicación del receptor."""
    return TestClient(make_receiver(callback).app)


class TestNotificationRoute:
    """Tests para el manejo de cada petición."""

    def test_valid_notification_invokes_callback(self, http, callback):
        """Verifica que una notificación firmada llegue al callback y responda 200."""
        body, headers = signed({"order_id": 1001, "status": "approved", "description": "Reviewed and approved"})

        response = http.post(PATH, content=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "order_id": "1001"}
        callback.assert_called_once()
        notification = callback.call_args.args[0]
        assert isinstance(notification, Notification)
        assert notification.order_id == "1001"
        assert notification.status is NotificationStatus.APPROVED
        assert notification.description == "Reviewed and approved"

    def test_missing_signature_is_unauthorized(self, http, callback):
        """Verifica que sin firma se responda 401 y no se invoque el callback."""
        response = http.post(PATH, content=b'{"order_id":"1","status":"approved"}')

        assert response.status_code == 401
        assert response.json()["error"]["error_code"] == "INVALID_WEBHOOK_SIGNATURE"
        callback.assert_not_called()

    def test_wrong_secret_is_unauthorized(self, http, callback):
        """Verifica que una firma con otro secreto sea rechazada."""
        body, headers = signed({"order_id": "1", "status": "approved"}, secret="other-secret")

        response = http.post(PATH, content=body, headers=headers)

        assert response.status_code == 401
        callback.assert_not_called()

    def test_tampered_body_is_unauthorized(self, http, callback):
        """Verifica que un cuerpo alterado después de firmar sea rechazado."""
        body, headers = signed({"order_id": "1", "status": "declined"})

        response = http.post(PATH, content=body.replace(b"declined", b"approved"), headers=headers)

        assert response.status_code == 401
        callback.assert_not_called()

    def test_invalid_json_is_bad_request(self, http, callback):
        """Verifica que un cuerpo firmado pero no JSON responda 400."""
        body, headers = signed(b"not json at all")

        response = http.post(PATH, content=body, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["error_code"] == "INVALID_NOTIFICATION"
        callback.assert_not_called()

    @pytest.mark.parametrize(
        "payload",
        [{"order_id": "1", "status": "pending_magic"}, {"status": "approved"}, [1, 2, 3]],
    )
    def test_invalid_notification_is_bad_request(self, http, callback, payload):
        """Verifica que un estado desconocido o campos faltantes respondan 400."""
        body, headers = signed(payload)

        response = http.post(PATH, content=body, headers=headers)

        assert response.status_code == 400
        callback.assert_not_called()

    def test_callback_error_returns_500_and_keeps_serving(self, http, callback, caplog):
        """Verifica que un fallo del callback responda 500 sin exponer el detalle y no detenga el receptor."""
        callback.side_effect = [RuntimeError("database down"), None]
        body, headers = signed({"order_id": "1", "status": "declined"})

        with caplog.at_level(logging.ERROR):
            first = http.post(PATH, content=body, headers=headers)
        second = http.post(PATH, content=body, headers=headers)

        assert first.status_code == 500
        assert first.json()["error"] == {"message": GENERIC_ERROR_MESSAGE, "error_code": "UNKNOWN_ERROR"}
        assert "database down" not in first.text
        assert any("database down" in record.getMessage() for record in caplog.records)
        assert second.status_code == 200
        assert callback.call_count == 2

    def test_async_callback_is_awaited(self):
        """Verifica que un callback asíncrono sea esperado."""
        received = []

        async def on_notification(notification):
            received.append(notification.order_id)

        http = TestClient(make_receiver(on_notification).app)
        body, headers = signed({"order_id": "A-1", "status": "captured"})

        response = http.post(PATH, content=body, headers=headers)

        assert response.status_code == 200
        assert received == ["A-1"]

    def test_shop_domain_mismatch(self, callback):
        """Verifica que un dominio de tienda distinto al configurado sea rechazado."""
        http = TestClient(make_receiver(callback, shop_domain=SHOP_DOMAIN).app)
        body, headers = signed({"order_id": "1", "status": "approved"})
        headers["X-RISKIFIED-SHOP-DOMAIN"] = "other.example.com"

        response = http.post(PATH, content=body, headers=headers)

        assert response.status_code == 401
        callback.assert_not_called()

    def test_only_configured_route_exists(self, http):
        """Verifica que solo exista la ruta POST configurada."""
        assert http.post("/other", content=b"{}").status_code == 404
        assert http.get(PATH).status_code == 405


class TestReceiverConstruction:
    """Tests para la construcción del receptor."""

    def test_callback_must_be_callable(self):
        """Verifica que el callback sea invocable."""
        with pytest.raises(ValueError):
            NotificationReceiver("not callable", AUTH_TOKEN)

    def test_token_is_required(self, callback):
        """Verifica que el token sea obligatorio."""
        with pytest.raises(ValueError):
            NotificationReceiver(callback, "")

    def test_path_must_be_absolute(self, callback):
        """Verifica que la ruta empiece con '/'."""
        with pytest.raises(ValueError):
            NotificationReceiver(callback, AUTH_TOKEN, path="notifications")

    def test_from_webhook_url(self, callback):
        """Verifica que el puerto y la ruta se tomen de la URL registrada."""
        receiver = NotificationReceiver.from_webhook_url(
            "https://merchant.example.com:8443/riskified/hook", callback, AUTH_TOKEN
        )

        assert receiver.port == 8443
        assert receiver.path == "/riskified/hook"
        assert receiver.host == "0.0.0.0"

    def test_from_webhook_url_default_port(self, callback):
        """Verifica el puerto por defecto según el esquema."""
        receiver = NotificationReceiver.from_webhook_url("http://merchant.example.com", callback, AUTH_TOKEN)

        assert receiver.port == 80
        assert receiver.path == "/"

    def test_from_webhook_url_rejects_other_schemes(self, callback):
        """Verifica que solo se acepten URLs http(s)."""
        with pytest.raises(ValueError):
            NotificationReceiver.from_webhook_url("ftp://merchant.example.com/hook", callback, AUTH_TOKEN)

    def test_from_settings(self, callback):
        """Verifica la construcción desde la configuración."""
        settings = Settings(
            RISKIFIED_AUTH_TOKEN=AUTH_TOKEN,
            RISKIFIED_SHOP_DOMAIN=SHOP_DOMAIN,
            NOTIFICATIONS_PORT=8081,
            NOTIFICATIONS_PATH="/hooks/riskified",
        )

        receiver = NotificationReceiver.from_settings(callback, settings)

        assert receiver.port == 8081
        assert receiver.path == "/hooks/riskified"
        assert receiver.shop_domain == SHOP_DOMAIN

    def test_from_settings_uses_webhook_url(self, callback):
        """Verifica que NOTIFICATIONS_WEBHOOK_URL defina puerto y ruta."""
        settings = Settings(
            _env_file=None,
            RISKIFIED_AUTH_TOKEN=AUTH_TOKEN,
            NOTIFICATIONS_HOST="127.0.0.1",
            NOTIFICATIONS_PORT=8081,
            NOTIFICATIONS_PATH="/hooks/riskified",
            NOTIFICATIONS_WEBHOOK_URL="https://merchant.example.com:9443/riskified/decisions",
        )

        receiver = NotificationReceiver.from_settings(callback, settings)

        assert receiver.port == 9443
        assert receiver.path == "/riskified/decisions"
        assert receiver.host == "127.0.0.1"


class TestReceiverLifecycle:
    """Tests para start/stop con un servidor real en un hilo."""

    @staticmethod
    def start_in_thread(receiver):
        thread = threading.Thread(target=receiver.start, daemon=True)
        thread.start()
        assert receiver.wait_until_listening(timeout=10), "receiver did not start"
        return thread

    def test_start_blocks_until_stop(self, callback):
        """Verifica que start bloquee hasta que otro hilo llame a stop."""
        receiver = make_receiver(callback)
        thread = self.start_in_thread(receiver)

        assert thread.is_alive()
        assert receiver.is_listening

        receiver.stop()
        thread.join(timeout=10)

        assert not thread.is_alive()
        assert not receiver.is_listening

    def test_serves_signed_notifications(self, callback):
        """Verifica que el servidor real entregue notificaciones al callback."""
        receiver = make_receiver(callback)
        thread = self.start_in_thread(receiver)
        try:
            body, headers = signed({"order_id": "77", "status": "submitted"})
            response = httpx.post(f"http://127.0.0.1:{receiver.bound_port}{PATH}", content=body, headers=headers)
        finally:
            receiver.stop()
            thread.join(timeout=10)

        assert response.status_code == 200
        assert callback.call_args.args[0].order_id == "77"

    def test_callbacks_are_serialized(self):
        """Verifica que nunca haya dos callbacks ejecutándose a la vez."""
        lock = threading.Lock()
        state = {"active": 0, "max_active": 0, "calls": 0}

        def slow_callback(notification):
            with lock:
                state["active"] += 1
                state["calls"] += 1
                state["max_active"] = max(state["max_active"], state["active"])
            time.sleep(0.1)
            with lock:
                state["active"] -= 1

        receiver = make_receiver(slow_callback)
        thread = self.start_in_thread(receiver)
        url = f"http://127.0.0.1:{receiver.bound_port}{PATH}"

        def send(i):
            body, headers = signed({"order_id": str(i), "status": "approved"})
            return httpx.post(url, content=body, headers=headers, timeout=10).status_code

        try:
            with ThreadPoolExecutor(max_workers=4) as pool:
                statuses = list(pool.map(send, range(4)))
        finally:
            receiver.stop()
            thread.join(timeout=10)

        assert statuses == [200, 200, 200, 200]
        assert state["calls"] == 4
        assert state["max_active"] == 1

    def test_start_twice_raises(self, callback):
        """Verifica que iniciar un receptor que ya escucha sea un error."""
        receiver = make_receiver(callback)
        thread = self.start_in_thread(receiver)
        try:
            with pytest.raises(NotificationReceiverException):
                receiver.start()
        finally:
            receiver.stop()
            thread.join(timeout=10)

    def test_stop_when_stopped_is_noop(self, callback):
        """Verifica que stop sin servidor activo no falle."""
        receiver = make_receiver(callback)

        receiver.stop()

        assert not receiver.is_listening
        assert receiver.bound_port is None

    def test_can_restart_after_stop(self, callback):
        """Verifica que un receptor detenido pueda volver a iniciarse."""
        receiver = make_receiver(callback)
        for _ in range(2):
            thread = self.start_in_thread(receiver)
            receiver.stop()
            thread.join(timeout=10)
            assert not thread.is_alive()

    def test_stop_lets_in_flight_request_finish(self):
        """Verifica que stop no corte una petición que ya está siendo atendida."""
        callback_started = threading.Event()

        def slow_callback(notification):
            callback_started.set()
            time.sleep(0.5)

        receiver = make_receiver(slow_callback)
        thread = self.start_in_thread(receiver)
        body, headers = signed({"order_id": "9", "status": "approved"})
        url = f"http://127.0.0.1:{receiver.bound_port}{PATH}"

        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(httpx.post, url, content=body, headers=headers, timeout=10)
            assert callback_started.wait(timeout=10)
            receiver.stop()
            response = future.result(timeout=10)

        thread.join(timeout=10)
        assert response.status_code == 200
        assert not thread.is_alive()
