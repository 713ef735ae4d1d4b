import pytest

import calculator
from pointscalc.storage import SqliteBlobStorage
from pointscalc.store import CatalogStore


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "points.sqlite3")


def run(db, *argv):
    return calculator.main(["--db", db, *argv])


def saved(db):
    return CatalogStore.open(SqliteBlobStorage(db))


def test_parse_number():
    assert calculator.parse_number("12.5") == 12.5
    assert calculator.parse_number(" 7 ") == 7.0
    assert calculator.parse_number("abc") != calculator.parse_number("abc")
    assert calculator.parse_number(None) != calculator.parse_number(None)


def test_add_and_show(db, capsys):
    assert run(db, "add", "Flights", "--name", "A", "--points", "100", "--price", "50") == 0
    assert run(db, "add", "Flights", "--name", "B", "--points", "200", "--price", "150") == 0
    capsys.readouterr()

    assert run(db, "show", "Flights") == 0
    out = capsys.readouterr().out

    assert out.index("B:") < out.index("A:")
    assert "(Best Deal!)" in out


def test_non_numeric_points_are_rejected(db, capsys):
    assert run(db, "add", "Flights", "--name", "A", "--points", "lots", "--price", "50") == 1
    assert "points must be a number" in capsys.readouterr().err
    assert saved(db).list_categories() == []


def test_add_category_then_list(db, capsys):
    assert run(db, "add-category", "Gift Cards") == 0
    assert run(db, "add-category", "Gift Cards") == 0
    capsys.readouterr()

    assert run(db, "list") == 0
    assert capsys.readouterr().out.strip() == "* Gift Cards (0 items)"


def test_edit_by_id(db):
    run(db, "add", "Flights", "--name", "A", "--points", "100", "--price", "50")
    item_id = saved(db).list_items("Flights")[0].item_id

    assert run(db, "edit", "Flights", str(item_id), "--price", "80") == 0

    item = saved(db).list_items("Flights")[0]
    assert (item.name, item.points, item.price) == ("A", 100, 80)


def test_edit_unknown_id(db, capsys):
    run(db, "add", "Flights", "--name", "A", "--points", "100", "--price", "50")
    assert run(db, "edit", "Flights", "99", "--price", "80") == 1
    assert "No item #99" in capsys.readouterr().err


def test_delete_last_item_removes_category(db):
    run(db, "add", "Flights", "--name", "A", "--points", "100", "--price", "50")
    item_id = saved(db).list_items("Flights")[0].item_id

    assert run(db, "delete", "Flights", str(item_id), "--yes") == 0
    assert saved(db).list_categories() == []


def test_delete_category_asks_first(db, monkeypatch, capsys):
    run(db, "add", "Flights", "--name", "A", "--points", "100", "--price", "50")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    assert run(db, "delete-category", "Flights") == 0
    assert "Cancelled." in capsys.readouterr().out
    assert saved(db).list_categories() == ["Flights"]

    monkeypatch.setattr("builtins.input", lambda prompt: "y")
    assert run(db, "delete-category", "Flights") == 0
    assert saved(db).list_categories() == []


def test_delete_unknown_category(db, capsys):
    assert run(db, "delete-category", "Nope", "--yes") == 1
    assert "Unknown category: Nope" in capsys.readouterr().err


def test_show_unknown_category(db, capsys):
    assert run(db, "show", "Nope") == 1
    assert "Unknown category: Nope" in capsys.readouterr().err


def test_render_writes_html(db, tmp_path):
    run(db, "add", "Flights", "--name", "A", "--points", "100", "--price", "50")
    out = tmp_path / "page.html"

    assert run(db, "render", "--output", str(out), "--theme", "light") == 0

    html = out.read_text(encoding="utf-8")
    assert "Best Deal!" in html
    assert 'class="light"' in html


def test_reset(db):
    run(db, "add", "Flights", "--name", "A", "--points", "100", "--price", "50")
    assert run(db, "reset", "--yes") == 0
    assert saved(db).list_categories() == []


def test_save_failure_is_reported_but_not_fatal(db, monkeypatch, capsys, failing_storage):
    monkeypatch.setattr(calculator, "SqliteBlobStorage", lambda path: failing_storage)

    code = run(db, "add", "Flights", "--name", "A", "--points", "100", "--price", "50")
    captured = capsys.readouterr()

    assert code == calculator.EXIT_NOT_SAVED
    assert "may not survive" in captured.err
    assert "A: 100 points" in captured.out


def test_edit_and_delete_accept_padded_category(db, capsys):
    run(db, "add", " Flights", "--name", "A", "--points", "100", "--price", "50")
    run(db, "add", "Flights", "--name", "B", "--points", "200", "--price", "150")
    a_id, b_id = [it.item_id for it in saved(db).list_items("Flights")]

    assert run(db, "edit", " Flights", str(a_id), "--price", "80") == 0
    assert run(db, "delete", "Flights ", str(b_id), "--yes") == 0
    assert run(db, "delete-category", " Flights ", "--yes") == 0
    assert saved(db).list_categories() == []


def test_unrelated_key_error_is_not_reported_as_unknown_category(db, monkeypatch):
    def broken(store, args):
        raise KeyError("boom")

    monkeypatch.setitem(calculator.COMMANDS, "list", broken)

    with pytest.raises(KeyError):
        run(db, "list")
