from __future__ import annotations

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine


def test_core_tables_exist(migrated_engine: Engine) -> None:
    inspector = inspect(migrated_engine)
    tables = set(inspector.get_table_names())
    missing = {"users", "transactions", "alembic_version"}.difference(tables)
    assert not missing, f"Missing tables after migration: {missing}"


def test_users_email_is_unique(migrated_engine: Engine) -> None:
    inspector = inspect(migrated_engine)
    indexes = {idx["name"]: idx for idx in inspector.get_indexes("users")}
    assert indexes["ix_users_email"]["unique"]


def test_transactions_schema_details(migrated_engine: Engine) -> None:
    inspector = inspect(migrated_engine)
    columns = {col["name"]: col for col in inspector.get_columns("transactions")}

    for required in ["user_id", "type", "amount", "description", "category", "date", "notes", "tags"]:
        assert required in columns, f"transactions missing column {required}"

    amount_type = columns["amount"]["type"]
    assert getattr(amount_type, "precision", None) == 18
    assert getattr(amount_type, "scale", None) == 2

    created_type = columns["created_at"]["type"]
    assert getattr(created_type, "timezone", False), "created_at should be timezone aware"

    indexes = {idx["name"] for idx in inspector.get_indexes("transactions")}
    for name in [
        "ix_transactions_user_id",
        "ix_transactions_category",
        "ix_transactions_date",
        "ix_transactions_user_date",
    ]:
        assert name in indexes, f"transactions missing index {name}"

    fks = inspector.get_foreign_keys("transactions")
    assert any(fk["referred_table"] == "users" for fk in fks)


def test_amount_check_constraint(migrated_engine: Engine) -> None:
    with migrated_engine.connect() as conn:
        result = conn.execute(
            text("SELECT 1 FROM information_schema.check_constraints WHERE constraint_name = :name"),
            {"name": "ck_transactions_amount_non_negative"},
        )
        assert result.fetchone() is not None
