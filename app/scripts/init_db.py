"""
Script para inicializar la base de datos.
Crea todas las tablas definidas en models/ y, si se indican las variables
ADMIN_USERNAME y ADMIN_PASSWORD, el primer usuario administrador.

Uso (desde app/):
    python -m scripts.init_db            # crear tablas
    python -m scripts.init_db --reset    # borrar y volver a crear
"""
import os
import sys
from core.database import engine, Base, SessionLocal
from core.exceptions import ValidationError
from core.user_service import create_admin_user
import models  # noqa: F401  (registra todas las tablas en Base.metadata)


def init_db(bind=None):
    """Crear todas las tablas en la base de datos"""
    print("🔨 Creando tablas en la base de datos...")
    Base.metadata.create_all(bind=bind or engine)
    print("✅ Tablas creadas exitosamente!")


def drop_db(bind=None):
    """Eliminar todas las tablas de la base de datos"""
    print("⚠️  Eliminando todas las tablas...")
    Base.metadata.drop_all(bind=bind or engine)
    print("✅ Tablas eliminadas!")


def create_initial_admin(session_factory=SessionLocal) -> bool:
    """Crear el administrador definido en el entorno. False si no se creó."""
    username = os.getenv("ADMIN_USERNAME")
    password = os.getenv("ADMIN_PASSWORD")
    if not username or not password:
        print("ℹ️  ADMIN_USERNAME/ADMIN_PASSWORD no definidos, no se crea administrador")
        return False

    db = session_factory()
    try:
        create_admin_user(db, username, password)
        print(f"✅ Administrador '{username}' creado")
        return True
    except ValidationError as exc:
        print(f"⚠️  No se creó el administrador: {exc.message}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if "--reset" in sys.argv:
        drop_db()
    init_db()
    create_initial_admin()
