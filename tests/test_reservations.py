"""
Tests de reservas: conflictos de horario, snapshot, facturas de productos
y checkout del carrito.
Ejecutar con: pytest tests/test_reservations.py -v
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from main import app
from core import reservation_service
from core.exceptions import ValidationError
from models import Product, Service, DiscountCode
from models.discounts import DiscountType
from models.reservations import (
    Reservation,
    ReservationItem,
    ReservationStatus,
    ReservationKind,
    DeliveryStatus,
)
from schemas.reservations import ReservationCreate
from conftest import fresh


def _booking(day, time="10:00", barber_id="b1", service_id="s1", **extra):
    payload = {
        "serviceId": service_id,
        "date": day,
        "time": time,
        "customerName": "Juan Pérez",
        "customerPhone": "555-123-4567",
    }
    if barber_id:
        payload["barberId"] = barber_id
    payload.update(extra)
    return payload


def _cart_service(service_id, name, price, day, time, barber_id="b1"):
    return {
        "type": "service",
        "id": service_id,
        "name": name,
        "price": price,
        "quantity": 1,
        "bookingData": {"barber": {"id": barber_id}, "date": day, "time": time},
    }


def _cart_product(product_id, name, price, quantity=1):
    return {"type": "product", "id": product_id, "name": name, "price": price, "quantity": quantity}


def _checkout(items, **extra):
    payload = {
        "cartItems": items,
        "customerName": "Ana López",
        "customerPhone": "555 987 6543",
    }
    payload.update(extra)
    return payload


# ==================== CONFLICTOS DE HORARIO ====================

class TestSlotConflicts:
    """Un horario solo puede tener una cita activa por barbero"""

    def test_crear_reserva(self, client, catalog, future_day):
        response = client.post("/api/reservations", json=_booking(future_day))
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["status"] == "pendiente"
        assert data["kind"] == "booking"
        assert data["service_label"] == "Corte clásico"
        assert data["service_price"] == 15.0
        assert data["barber_name"] == "Carlos"

    def test_mismo_barbero_mismo_horario(self, client, catalog, future_day):
        assert client.post("/api/reservations", json=_booking(future_day)).status_code == 201

        response = client.post("/api/reservations", json=_booking(future_day, service_id="s2"))
        assert response.status_code == 400
        assert response.json()["error"]["message"] == reservation_service.BARBER_SLOT_TAKEN_MESSAGE

    def test_barberos_distintos_mismo_horario(self, client, catalog, future_day):
        assert client.post("/api/reservations", json=_booking(future_day, barber_id="b1")).status_code == 201
        assert client.post("/api/reservations", json=_booking(future_day, barber_id="b2")).status_code == 201

    def test_cita_sin_barbero_bloquea_a_todos(self, client, catalog, future_day):
        assert client.post("/api/reservations", json=_booking(future_day, barber_id=None)).status_code == 201

        response = client.post("/api/reservations", json=_booking(future_day, barber_id="b2"))
        assert response.status_code == 400
        assert response.json()["error"]["message"] == reservation_service.SLOT_TAKEN_MESSAGE

    def test_cita_sin_barbero_choca_con_cualquier_cita(self, client, catalog, future_day):
        assert client.post("/api/reservations", json=_booking(future_day, barber_id="b2")).status_code == 201

        response = client.post("/api/reservations", json=_booking(future_day, barber_id=None))
        assert response.status_code == 400

    def test_cancelada_libera_el_horario(self, client, catalog, future_day, admin_headers):
        first = client.post("/api/reservations", json=_booking(future_day)).json()["data"]

        response = client.put(
            f"/api/reservations/{first['id']}/status",
            json={"status": "cancelada"},
            headers=admin_headers
        )
        assert response.status_code == 200

        assert client.post("/api/reservations", json=_booking(future_day)).status_code == 201

    def test_reactivar_cancelada_con_horario_ocupado(self, client, catalog, future_day, admin_headers):
        first = client.post("/api/reservations", json=_booking(future_day)).json()["data"]
        client.put(f"/api/reservations/{first['id']}/status", json={"status": "cancelada"}, headers=admin_headers)
        assert client.post("/api/reservations", json=_booking(future_day)).status_code == 201

        response = client.put(
            f"/api/reservations/{first['id']}/status",
            json={"status": "confirmada"},
            headers=admin_headers
        )
        assert response.status_code == 400
        assert client.get("/api/reservations/admin", headers=admin_headers).json()["data"][-1]["status"] == "cancelada"

    def test_fecha_pasada(self, client, catalog):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        response = client.post("/api/reservations", json=_booking(yesterday))
        assert response.status_code == 400
        assert response.json()["error"]["message"] == reservation_service.PAST_DATE_MESSAGE

    def test_hora_invalida(self, client, catalog, future_day):
        response = client.post("/api/reservations", json=_booking(future_day, time="25:00"))
        assert response.status_code == 400

    def test_telefono_invalido(self, client, catalog, future_day):
        response = client.post("/api/reservations", json=_booking(future_day, customerPhone="abc"))
        assert response.status_code == 400


class TestOccupancy:
    """Consulta pública de horarios ocupados"""

    def test_ocupacion_sin_datos_del_cliente(self, client, catalog, future_day):
        client.post("/api/reservations", json=_booking(future_day))

        response = client.get(f"/api/reservations?date={future_day}")
        assert response.status_code == 200

        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["time"] == "10:00"
        assert "customer_name" not in data[0]
        assert "customer_phone" not in data[0]

    def test_ocupacion_por_barbero_incluye_citas_sin_barbero(self, client, catalog, future_day):
        client.post("/api/reservations", json=_booking(future_day, time="10:00", barber_id="b1"))
        client.post("/api/reservations", json=_booking(future_day, time="11:00", barber_id="b2"))
        client.post("/api/reservations", json=_booking(future_day, time="12:00", barber_id=None))

        data = client.get(f"/api/reservations?date={future_day}&barberId=b1").json()["data"]
        assert [r["time"] for r in data] == ["10:00", "12:00"]

    def test_listado_admin_requiere_admin(self, client, user_headers):
        assert client.get("/api/reservations/admin", headers=user_headers).status_code == 403


class TestSnapshot:
    """El precio y nombre se congelan al reservar"""

    def test_cambio_de_precio_no_afecta_reservas(self, client, catalog, db_session, future_day):
        reservation_id = client.post("/api/reservations", json=_booking(future_day)).json()["data"]["id"]

        service = db_session.get(Service, "s1")
        service.price = Decimal("20.00")
        service.name = "Corte premium"
        db_session.commit()

        reservation = fresh(db_session, Reservation, reservation_id)
        assert reservation.service_price == Decimal("15.00")
        assert reservation.service_label == "Corte clásico"

    def test_servicio_inexistente_es_error_de_datos(self, client, catalog, future_day):
        response = client.post("/api/reservations", json=_booking(future_day, service_id="zz"))
        assert response.status_code == 400


class TestProductInvoice:
    """Facturas de productos creadas desde el panel"""

    def test_factura_no_ocupa_horario(self, client, catalog, future_day):
        invoice = _booking(future_day, serviceLabel="Factura - Solo Productos")
        response = client.post("/api/reservations", json=invoice)
        assert response.status_code == 201
        assert response.json()["data"]["kind"] == "product_invoice"
        assert response.json()["data"]["delivery_status"] == "pendiente"

        # El mismo horario sigue libre para una cita
        assert client.post("/api/reservations", json=_booking(future_day)).status_code == 201
        # Y otra factura en el mismo horario también es válida
        assert client.post("/api/reservations", json=invoice).status_code == 201

    def test_factura_admite_fecha_pasada(self, client, catalog):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        response = client.post(
            "/api/reservations",
            json=_booking(yesterday, serviceLabel="Factura - Solo Productos")
        )
        assert response.status_code == 201

    def test_estado_de_entrega(self, client, catalog, future_day, admin_headers):
        invoice = client.post(
            "/api/reservations",
            json=_booking(future_day, serviceLabel="Factura - Solo Productos")
        ).json()["data"]

        response = client.put(
            f"/api/reservations/{invoice['id']}/delivery-status",
            json={"deliveryStatus": "entregado"},
            headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["delivery_status"] == "entregado"

    def test_estado_de_entrega_solo_para_facturas(self, client, catalog, future_day, admin_headers):
        booking = client.post("/api/reservations", json=_booking(future_day)).json()["data"]

        response = client.put(
            f"/api/reservations/{booking['id']}/delivery-status",
            json={"deliveryStatus": "entregado"},
            headers=admin_headers
        )
        assert response.status_code == 400


# ==================== CHECKOUT DEL CARRITO ====================

class TestCartCheckout:
    """Conversión del carrito en reservas y factura"""

    def test_solo_productos(self, client, catalog, db_session):
        response = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_product("p1", "Cera mate", 12.5, quantity=2)
        ]))
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["success"] == 1
        assert data["failed"] == 0
        invoice = data["reservations"][0]
        assert invoice["kind"] == "product_invoice"
        assert invoice["status"] == "confirmada"
        assert invoice["delivery_status"] == "pendiente"
        assert invoice["service_label"] == "Factura - Solo Productos"

        assert fresh(db_session, Product, "p1").stock == 8
        items = db_session.query(ReservationItem).filter_by(reservation_id=data["mainReservationId"]).all()
        assert len(items) == 1
        assert items[0].subtotal == Decimal("25.00")

    def test_servicio_y_producto(self, client, catalog, db_session, future_day):
        response = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_service("s1", "Corte clásico", 15, future_day, "10:00"),
            _cart_product("p2", "Aceite de barba", 10),
        ]))
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["success"] == 1
        booking = data["reservations"][0]
        assert booking["kind"] == "booking"
        assert booking["barber_name"] == "Carlos"
        assert booking["customer_name"] == "Ana López"

        db_session.expire_all()
        items = db_session.query(ReservationItem).filter_by(reservation_id=data["mainReservationId"]).all()
        assert {i.item_id for i in items} == {"s1", "p2"}
        # Stock ilimitado no cambia
        assert fresh(db_session, Product, "p2").stock is None

    def test_oferta_toma_precio_final(self, client, catalog, future_day):
        offer = {
            "type": "offer",
            "id": "o1",
            "name": "Corte + Barba",
            "price": 20,
            "bookingData": {"barber": {"id": "b2"}, "date": future_day, "time": "16:00"},
        }
        data = client.post("/api/reservations/from-cart", json=_checkout([offer])).json()["data"]
        booking = data["reservations"][0]
        assert booking["service_id"] is None
        assert booking["service_price"] == 20.0
        assert booking["barber_name"] == "Luis"

    def test_conflicto_parcial(self, client, catalog, db_session, future_day):
        client.post("/api/reservations", json=_booking(future_day, time="10:00"))

        response = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_service("s1", "Corte clásico", 15, future_day, "10:00"),
            _cart_service("s2", "Arreglo de barba", 10, future_day, "11:00"),
        ]))
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["success"] == 1
        assert data["failed"] == 1
        assert data["errors"] == [{"item": "Corte clásico", "error": "El horario ya está ocupado"}]
        assert data["reservations"][0]["time"] == "11:00"

    def test_todos_en_conflicto_cancela_el_checkout(self, client, catalog, db_session, future_day):
        client.post("/api/reservations", json=_booking(future_day, time="10:00"))

        response = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_service("s1", "Corte clásico", 15, future_day, "10:00"),
            _cart_product("p1", "Cera mate", 12.5),
        ]))
        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("No se pudieron crear las reservas")

        db_session.expire_all()
        assert db_session.query(Reservation).count() == 1
        assert db_session.query(ReservationItem).count() == 0
        assert fresh(db_session, Product, "p1").stock == 10

    def test_stock_insuficiente_cancela_todo(self, client, catalog, db_session, future_day):
        response = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_service("s1", "Corte clásico", 15, future_day, "10:00"),
            _cart_product("p3", "Shampoo", 8, quantity=2),
        ]))
        assert response.status_code == 400
        assert "Stock insuficiente" in response.json()["error"]["message"]

        db_session.expire_all()
        assert db_session.query(Reservation).count() == 0
        assert fresh(db_session, Product, "p3").stock == 1

    def test_servicio_sin_horario(self, client, catalog):
        item = {"type": "service", "id": "s1", "name": "Corte clásico", "price": 15}
        response = client.post("/api/reservations/from-cart", json=_checkout([item]))
        assert response.status_code == 400
        assert "Corte clásico" in response.json()["error"]["message"]

    def test_fecha_pasada_en_carrito(self, client, catalog, future_day):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        response = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_service("s1", "Corte clásico", 15, yesterday, "10:00"),
            _cart_service("s2", "Arreglo de barba", 10, future_day, "10:00"),
        ]))
        data = response.json()["data"]
        assert data["success"] == 1
        assert data["errors"][0]["error"] == reservation_service.PAST_DATE_MESSAGE

    def test_descuento_repartido_entre_lineas(self, client, catalog, db_session, future_day):
        discount = DiscountCode(
            code="PROMO5",
            discount_type=DiscountType.FIXED,
            discount_value=Decimal("5.00"),
            usage_count=0
        )
        db_session.add(discount)
        db_session.commit()
        discount_id = discount.id

        response = client.post("/api/reservations/from-cart", json=_checkout(
            [
                _cart_service("s1", "Corte clásico", 15, future_day, "10:00"),
                _cart_product("p2", "Aceite de barba", 10),
            ],
            discountCodeId=discount_id,
            discountAmount=5,
            subtotal=25
        ))
        assert response.status_code == 201

        db_session.expire_all()
        items = {i.item_id: i for i in db_session.query(ReservationItem).all()}
        assert items["s1"].discount_amount == Decimal("3.00")
        assert items["s1"].subtotal == Decimal("12.00")
        assert items["p2"].discount_amount == Decimal("2.00")
        assert items["p2"].subtotal == Decimal("8.00")
        assert items["s1"].discount_code_id == discount_id
        assert fresh(db_session, DiscountCode, discount_id).usage_count == 1

    def test_nombre_requerido(self, client, catalog):
        payload = _checkout([_cart_product("p1", "Cera mate", 12.5)], customerName=" ")
        assert client.post("/api/reservations/from-cart", json=payload).status_code == 400


# ==================== ADMIN ====================

class TestReservationAdmin:
    """Estados, borrado y cascadas"""

    def test_cambiar_estado(self, client, catalog, future_day, admin_headers):
        booking = client.post("/api/reservations", json=_booking(future_day)).json()["data"]

        response = client.put(
            f"/api/reservations/{booking['id']}/status",
            json={"status": "confirmada"},
            headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "confirmada"

    def test_estado_invalido(self, client, catalog, future_day, admin_headers):
        booking = client.post("/api/reservations", json=_booking(future_day)).json()["data"]
        response = client.put(
            f"/api/reservations/{booking['id']}/status",
            json={"status": "terminada"},
            headers=admin_headers
        )
        assert response.status_code == 400

    def test_reserva_inexistente(self, client, admin_headers):
        response = client.put("/api/reservations/999/status", json={"status": "confirmada"}, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Reserva no encontrada"

    def test_eliminar_reserva_borra_lineas(self, client, catalog, db_session, admin_headers):
        data = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_product("p1", "Cera mate", 12.5)
        ])).json()["data"]

        response = client.delete(f"/api/reservations/{data['mainReservationId']}", headers=admin_headers)
        assert response.status_code == 200

        db_session.expire_all()
        assert db_session.query(Reservation).count() == 0
        assert db_session.query(ReservationItem).count() == 0

    def test_eliminar_barbero_elimina_sus_reservas(self, client, catalog, db_session, future_day, admin_headers):
        client.post("/api/reservations", json=_booking(future_day, barber_id="b1"))
        client.post("/api/reservations", json=_booking(future_day, barber_id="b2"))

        response = client.delete("/api/barbers/b1", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["deleted_reservations"] == 1

        db_session.expire_all()
        assert [r.barber_id for r in db_session.query(Reservation).all()] == ["b2"]

    def test_eliminar_producto_conserva_lineas(self, client, catalog, db_session, admin_headers):
        data = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_product("p1", "Cera mate", 12.5)
        ])).json()["data"]

        assert client.delete("/api/products/p1", headers=admin_headers).status_code == 200

        items = client.get(
            f"/api/reservations/{data['mainReservationId']}/items",
            headers=admin_headers
        ).json()["data"]
        assert items[0]["item_name"] == "Cera mate"
        assert items[0]["unit_price"] == 12.5


class TestReservationService:
    """Reglas del servicio sin pasar por HTTP"""

    def test_conflicto_directo(self, catalog, future_day):
        db = catalog
        data = ReservationCreate(serviceId="s1", barberId="b1", date=future_day, time="09:00")
        reservation_service.create_reservation(db, data)

        with pytest.raises(ValidationError):
            reservation_service.create_reservation(db, data)

        assert db.query(Reservation).count() == 1

    def test_factura_creada_en_el_panel(self, catalog, future_day):
        db = catalog
        data = ReservationCreate(
            serviceId="s1",
            serviceLabel="Factura - Solo Productos",
            date=future_day,
            time="09:00"
        )
        reservation = reservation_service.create_reservation(db, data)
        assert reservation.kind == ReservationKind.PRODUCT_INVOICE
        assert reservation.delivery_status == DeliveryStatus.PENDIENTE
        assert reservation.status == ReservationStatus.PENDIENTE

    def test_hora_de_factura_desplazada(self):
        from datetime import datetime
        now = datetime(2026, 3, 10, 14, 59, 30, 500000)
        # 500 ms => +5 minutos, con vuelta al inicio de la hora
        assert reservation_service._product_invoice_time(now) == "14:04"


# ==================== ERRORES DE LA BASE DE DATOS ====================

class _DriverError(Exception):
    """Error del driver con el SQLSTATE que expone psycopg2"""

    def __init__(self, pgcode):
        super().__init__(f"SQLSTATE {pgcode}")
        self.pgcode = pgcode


def _fail_inside_transaction(monkeypatch, pgcode):
    def broken_snapshot(*args, **kwargs):
        raise OperationalError("INSERT INTO reservations ...", {}, _DriverError(pgcode))

    monkeypatch.setattr(reservation_service, "build_snapshot", broken_snapshot)


class TestDatabaseConflicts:
    """Fallos de concurrencia detectados por PostgreSQL"""

    @pytest.mark.parametrize("pgcode", ["40001", "40P01", "55P03", "23505"])
    def test_carrera_se_reporta_como_horario_ocupado(self, client, catalog, db_session, future_day, monkeypatch, pgcode):
        _fail_inside_transaction(monkeypatch, pgcode)

        response = client.post("/api/reservations", json=_booking(future_day))
        assert response.status_code == 400
        assert response.json()["error"]["message"] == reservation_service.SLOT_TAKEN_MESSAGE
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

        db_session.expire_all()
        assert db_session.query(Reservation).count() == 0

    def test_carrera_en_checkout_del_carrito(self, client, catalog, db_session, future_day, monkeypatch):
        _fail_inside_transaction(monkeypatch, "40001")

        response = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_service("s1", "Corte clásico", 15, future_day, "10:00"),
            _cart_product("p1", "Cera mate", 12.5),
        ]))
        assert response.status_code == 400
        assert response.json()["error"]["message"] == reservation_service.SLOT_TAKEN_MESSAGE

        db_session.expire_all()
        assert db_session.query(Reservation).count() == 0
        assert fresh(db_session, Product, "p1").stock == 10

    def test_otro_error_de_base_de_datos_no_se_traduce(self, catalog, future_day, monkeypatch):
        _fail_inside_transaction(monkeypatch, "XX000")
        data = ReservationCreate(serviceId="s1", barberId="b1", date=future_day, time="09:00")

        with pytest.raises(OperationalError):
            reservation_service.create_reservation(catalog, data)

        assert catalog.query(Reservation).count() == 0

    def test_otro_error_de_base_de_datos_responde_500(self, client, catalog, db_session, future_day, monkeypatch):
        _fail_inside_transaction(monkeypatch, "XX000")

        with TestClient(app, raise_server_exceptions=False) as raw_client:
            response = raw_client.post("/api/reservations", json=_booking(future_day))

        assert response.status_code == 500
        assert response.json()["error"]["message"].startswith("Error interno del servidor")

        db_session.expire_all()
        assert db_session.query(Reservation).count() == 0


class TestInvoiceDiscountCode:
    """Las líneas de la factura muestran el código de descuento usado"""

    def test_items_incluyen_el_codigo(self, client, catalog, db_session, admin_headers):
        discount = DiscountCode(
            code="PROMO5",
            discount_type=DiscountType.FIXED,
            discount_value=Decimal("5.00"),
            usage_count=0
        )
        db_session.add(discount)
        db_session.commit()
        discount_id = discount.id

        data = client.post("/api/reservations/from-cart", json=_checkout(
            [_cart_product("p2", "Aceite de barba", 10)],
            discountCodeId=discount_id,
            discountAmount=5,
            subtotal=10
        )).json()["data"]

        items = client.get(
            f"/api/reservations/{data['mainReservationId']}/items",
            headers=admin_headers
        ).json()["data"]
        assert items[0]["discount_code_id"] == discount_id
        assert items[0]["discount_code"] == "PROMO5"
        assert items[0]["subtotal"] == 5.0

    def test_items_sin_codigo(self, client, catalog, admin_headers):
        data = client.post("/api/reservations/from-cart", json=_checkout([
            _cart_product("p2", "Aceite de barba", 10)
        ])).json()["data"]

        items = client.get(
            f"/api/reservations/{data['mainReservationId']}/items",
            headers=admin_headers
        ).json()["data"]
        assert items[0]["discount_code"] is None
