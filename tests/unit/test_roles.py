import pytest

from jobtracker.core.roles import RoleService
from jobtracker.db.models import User
from jobtracker.db.repositories import Repository
from jobtracker.db.session import SessionLocal
from jobtracker.errors import ConflictError, NotFoundError, ValidationFailed


def _bare_user(db, email: str) -> User:
    return Repository(db).add_user(User(email=email, user_name=email, password_hash=None))


def test_default_roles_are_seeded() -> None:
    with SessionLocal() as db:
        assert RoleService(db).list_roles() == ["Admin", "Recruiter", "User"]
        assert RoleService(db).ensure_roles_created() == []


def test_ensure_default_role_is_idempotent() -> None:
    with SessionLocal() as db:
        user = _bare_user(db, "norole@example.com")
        service = RoleService(db)

        assert service.ensure_default_role(user)
        assert not service.ensure_default_role(user)
        db.commit()
        assert user.role_names == ["User"]


def test_assign_unknown_role_fails() -> None:
    with SessionLocal() as db:
        user = _bare_user(db, "x@example.com")
        with pytest.raises(NotFoundError):
            RoleService(db).assign_role(user, "Astronaut")


def test_remove_role_guards() -> None:
    with SessionLocal() as db:
        service = RoleService(db)
        admin = _bare_user(db, "admin@example.com")
        service.assign_role(admin, "Admin")

        with pytest.raises(ConflictError, match="not in role"):
            service.remove_role(admin, "Recruiter")
        with pytest.raises(ConflictError, match="last admin"):
            service.remove_role(admin, "Admin")

        second = _bare_user(db, "admin2@example.com")
        service.assign_role(second, "Admin")
        service.remove_role(admin, "Admin")
        assert admin.role_names == []


def test_create_role_and_migrate_users() -> None:
    with SessionLocal() as db:
        service = RoleService(db)
        with pytest.raises(ValidationFailed):
            service.create_role("   ")
        assert service.create_role("Auditor")
        assert not service.create_role("Auditor")

        _bare_user(db, "a@example.com")
        _bare_user(db, "b@example.com")
        assert service.migrate_users_without_roles() == 2
        assert service.migrate_users_without_roles() == 0
