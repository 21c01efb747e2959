from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from core.config import settings

# URL de conexión a PostgreSQL
DATABASE_URL = settings.DATABASE_URL

# Pool de conexiones compartido (máximo DB_POOL_SIZE conexiones, sin overflow)
engine_options = {"pool_pre_ping": True}
if not DATABASE_URL.startswith("sqlite"):
    engine_options.update(pool_size=settings.DB_POOL_SIZE, max_overflow=0)

# Crear el engine de SQLAlchemy
engine = create_engine(DATABASE_URL, **engine_options)

# Crear la sesión
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base para los modelos
Base = declarative_base()

# Dependency para FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
