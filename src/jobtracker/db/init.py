from __future__ import annotations

from pathlib import Path

from jobtracker.config import get_settings
from jobtracker.db.base import Base
from jobtracker.db.session import SessionLocal, engine
from jobtracker.db import models  # noqa: F401
from jobtracker.db.seed import seed_bootstrap_admin, seed_roles


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [settings.data_dir, settings.upload_dir]
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, int]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as session:
        created_roles = seed_roles(session)
        admin_created = seed_bootstrap_admin(session)
    return {"created_roles": len(created_roles), "admin_created": int(admin_created)}
