from __future__ import annotations

import importlib
from pathlib import Path

from config import get_settings_module

from virtual_queue.container import connection_from_settings
from virtual_queue.database.bootstrap import apply_seed_sql, ensure_admin_account


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    conn = connection_from_settings(db_config)

    seed_path = Path(__file__).resolve().parents[1] / "database" / "seed.sql"
    apply_seed_sql(conn, seed_path=seed_path)

    email = getattr(settings, "ADMIN_EMAIL", "")
    password = getattr(settings, "ADMIN_PASSWORD", "")
    if not email or not password:
        raise SystemExit("ADMIN_EMAIL / ADMIN_PASSWORD are not set; seeded counters only.")
    user_id = ensure_admin_account(
        conn,
        email=email,
        password=password,
        full_name=getattr(settings, "ADMIN_NAME", "Administrator"),
    )

    print(
        "OK: Seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(admin user_id={user_id})"
    )


if __name__ == "__main__":
    main()
