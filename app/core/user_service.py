"""
Gestión de usuarios del panel.
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session
from core.exceptions import ValidationError
from core.security import hash_password, verify_password, password_strength_error
from models.user import User

logger = logging.getLogger(__name__)


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    """Usuario si las credenciales son correctas, None en otro caso"""
    user = db.query(User).filter(User.username == username).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def create_admin_user(db: Session, username: str, password: str, role: str = "admin") -> User:
    """
    Crear un usuario del panel con contraseña fuerte.

    Raises:
        ValidationError: usuario existente o contraseña débil
    """
    username = (username or "").strip()
    if len(username) < 3:
        raise ValidationError("El nombre de usuario debe tener al menos 3 caracteres")

    error = password_strength_error(password)
    if error:
        raise ValidationError(error)

    if db.query(User).filter(User.username == username).first():
        raise ValidationError("El usuario ya existe")

    user = User(username=username, password_hash=hash_password(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Usuario {username} creado con rol {role}")
    return user
