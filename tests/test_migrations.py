from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import get_settings
from models import Budget

ROOT = Path(__file__).resolve().parents[1]


def test_upgrade_enforces_one_overall_budget_per_month(tmp_path, monkeypatch) -> None:
    url = f"sqlite:///{tmp_path / 'finance.db'}"
    monkeypatch.setenv("FINANCE_DATABASE_URL", url)
    get_settings.cache_clear()
    try:
        cfg = Config()
        cfg.set_main_option("script_location", str(ROOT / "alembic"))
        command.upgrade(cfg, "head")
    finally:
        get_settings.cache_clear()

    engine = create_engine(url)
    with engine.connect() as conn:
        index_names = set(
            conn.scalars(
                text("SELECT name FROM sqlite_master WHERE type = 'index'")
            )
        )
    assert "uq_budget_user_month_overall" in index_names

    with Session(engine) as session:
        session.add(Budget(user_id=1, year=2026, month=5, amount_cents=100_000))
        session.flush()
        session.add(Budget(user_id=1, year=2026, month=5, amount_cents=80_000))
        with pytest.raises(IntegrityError):
            session.flush()
    engine.dispose()
