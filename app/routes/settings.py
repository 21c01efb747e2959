"""
Configuración clave/valor del negocio.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from core.database import get_db
from core.dependencies import get_current_admin_user
from core.exceptions import NotFoundError
from models.settings import Setting
from models.user import User
from schemas.settings import SettingUpdate

router = APIRouter(
    prefix="/settings",
    tags=["settings"]
)


@router.get("")
async def list_settings(db: Session = Depends(get_db)):
    """Todas las configuraciones como diccionario {clave: valor}"""
    rows = db.query(Setting).order_by(Setting.key.asc()).all()
    return {
        "success": True,
        "status_code": 200,
        "message": "Configuración obtenida exitosamente",
        "data": {row.key: row.value for row in rows}
    }


@router.get("/{key}")
async def get_setting(key: str, db: Session = Depends(get_db)):
    setting = db.query(Setting).filter(Setting.key == key).first()
    if not setting:
        raise NotFoundError("Configuración no encontrada")

    return {
        "success": True,
        "status_code": 200,
        "message": "Configuración obtenida exitosamente",
        "data": {"key": setting.key, "value": setting.value}
    }


@router.put("/{key}")
async def upsert_setting(
    key: str,
    setting_data: SettingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """Crear o actualizar una configuración (solo administradores)"""
    setting = db.query(Setting).filter(Setting.key == key).first()
    if setting:
        setting.value = setting_data.value
    else:
        setting = Setting(key=key, value=setting_data.value)
        db.add(setting)

    db.commit()
    db.refresh(setting)

    return {
        "success": True,
        "status_code": 200,
        "message": "Configuración guardada exitosamente",
        "data": {"key": setting.key, "value": setting.value}
    }
