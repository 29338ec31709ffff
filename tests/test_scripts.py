from datetime import date

import pytest

from backend.app.analytics.store import CounterField, CounterStore
from backend.app.models import Role
from backend.app.user_store import UserStore
from backend.scripts import manage_users
from src import export_csv


def test_create_admin_and_set_role(tmp_path, capsys):
    db = tmp_path / "portal.db"
    manage_users.main(["--db", str(db), "create", "root", "root@example.com", "--role", "Admin", "--password", "pw"])
    assert "Created root (admin)" in capsys.readouterr().out
    store = UserStore(db)
    assert store.get_by_username("root")["role"] is Role.ADMIN

    manage_users.main(["--db", str(db), "set-role", "root", "member"])
    assert store.get_by_username("root")["role"] is Role.MEMBER


def test_set_role_unknown_user(tmp_path):
    with pytest.raises(SystemExit):
        manage_users.main(["--db", str(tmp_path / "portal.db"), "set-role", "ghost", "admin"])


def test_export_counters(tmp_path):
    db = tmp_path / "portal.db"
    store = CounterStore(db)
    store.increment(date(2024, 3, 2), CounterField.PAGE_VIEWS, delta=4)
    store.increment(date(2024, 3, 1), CounterField.BUTTON_CLICKS, delta=2)
    out = tmp_path / "out" / "counters.csv"

    export_csv.main(["--db", str(db), "--output", str(out)])

    lines = out.read_text(encoding="utf-8-sig").splitlines()
    assert lines == ["date,page_views,button_clicks", "2024-03-01,0,2", "2024-03-02,4,0"]
    with pytest.raises(FileExistsError):
        export_csv.main(["--db", str(db), "--output", str(out)])


def test_build_csv_escapes():
    text = export_csv.build_csv(("a", "b"), [{"a": 'x,"y"', "b": 3}])
    assert text == 'a,b\r\n"x,""y""",3\r\n'


def test_build_csv_fills_missing_columns_and_quotes_newlines():
    text = export_csv.build_csv(("date", "note"), [{"date": "2024-03-15", "extra": 1}, {"note": "two\nlines"}])
    assert text == 'date,note\r\n2024-03-15,\r\n,"two\nlines"\r\n'
