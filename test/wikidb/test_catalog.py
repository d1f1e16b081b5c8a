import pytest

from src.wikidb.catalog import (
    Action,
    QueryCatalog,
    QueryCatalogError,
    load_query_catalog,
)


def test_bundled_catalog_has_every_action(catalog):
    assert len(catalog) == 5
    for action in Action:
        statement = catalog.statement(action)
        assert statement.action is action
        assert statement.sql


def test_placeholders_match_parameter_order(catalog):
    assert catalog[Action.ALL_PAGES].sql.count("%s") == 0
    assert catalog[Action.GET_PAGE].sql.count("%s") == 1
    assert catalog[Action.SAVE_PAGE].sql.count("%s") == 1
    assert catalog[Action.DELETE_PAGE].sql.count("%s") == 1
    update = catalog[Action.UPDATE_PAGE].sql
    assert update.count("%s") == 2
    # name first, uid second
    assert update.index("name") < update.index("uid")


def test_missing_key_fails_loading(tmp_path):
    path = tmp_path / "queries.env"
    path.write_text(
        "all-pages=select uid, name from pages\n"
        "get-page=select uid, name from pages where uid = %s\n"
        "save-page=insert into pages (name) values (%s)\n"
        "update-page=update pages set name = %s where uid = %s\n"
    )
    with pytest.raises(QueryCatalogError) as info:
        load_query_catalog(path)
    assert "delete-page" in str(info.value)


def test_missing_file_fails_loading(tmp_path):
    with pytest.raises(QueryCatalogError):
        load_query_catalog(tmp_path / "absent.env")


def test_custom_file_is_used(tmp_path):
    path = tmp_path / "queries.env"
    path.write_text("\n".join(f"{a.value}=select {i}" for i, a in enumerate(Action)) + "\n")
    catalog = load_query_catalog(path)
    assert catalog[Action.DELETE_PAGE].sql == "select 4"


def test_catalog_is_read_only(catalog):
    with pytest.raises(TypeError):
        catalog._statements[Action.ALL_PAGES] = None
    with pytest.raises(QueryCatalogError):
        QueryCatalog({Action.ALL_PAGES: "select 1"})


def test_action_parse():
    assert Action.parse("get-page") is Action.GET_PAGE
    assert Action.parse("frobnicate") is None
    assert Action.parse("") is None
