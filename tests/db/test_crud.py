from __future__ import annotations

import datetime

import pytest
from sqlalchemy.exc import DBAPIError

from recmap import ConfigurationError, NoRowsError

from _records import (
    BAD_NAME_ERROR,
    Invoice,
    InvoicePersonView,
    Person,
    PersistentUser,
    TableWithNull,
    WithIgnoredColumn,
    WithStringPk,
    WithTime,
)


def test_crud_round_trip(dbmap) -> None:
    inv = Invoice(created=100, updated=200, memo="first order", is_paid=True)

    dbmap.insert(inv)
    assert inv.id != 0

    inv2 = dbmap.get(Invoice, inv.id)
    assert inv2 == inv

    inv.memo = "second order"
    inv.created = 999
    inv.updated = 11111
    assert dbmap.update(inv) == 1
    assert dbmap.get(Invoice, inv.id) == inv

    assert dbmap.delete(inv) == 1
    with pytest.raises(NoRowsError):
        dbmap.get(Invoice, inv.id)


def test_get_binds_into_existing_instance(dbmap) -> None:
    inv = Invoice(memo="in place")
    dbmap.insert(inv)

    dest = Invoice()
    returned = dbmap.get(dest, inv.id)

    assert returned is dest
    assert dest == inv


def test_multiple_records_in_one_call(dbmap) -> None:
    inv1 = Invoice(created=100, updated=200, memo="a")
    inv2 = Invoice(created=100, updated=200, memo="b", is_paid=True)
    dbmap.insert(inv1, inv2)
    assert inv1.id != inv2.id

    inv1.memo = "c"
    inv2.memo = "d"
    assert dbmap.update(inv1, inv2) == 2

    assert dbmap.delete(inv1, inv2) == 2


def test_update_without_version_matching_no_row_is_not_an_error(dbmap) -> None:
    ghost = Invoice(id=4242, memo="never inserted")
    assert dbmap.update(ghost) == 0
    assert dbmap.delete(ghost) == 0


def test_insert_unregistered_type_fails(dbmap) -> None:
    with pytest.raises(ConfigurationError):
        dbmap.insert(TableWithNull(id=10))


def test_insert_rejects_class_instead_of_record(dbmap) -> None:
    with pytest.raises(ConfigurationError):
        dbmap.insert(Invoice)


def test_get_rejects_unusable_destinations(dbmap) -> None:
    with pytest.raises(ConfigurationError):
        dbmap.get([], 1)
    with pytest.raises(ConfigurationError):
        dbmap.get(TableWithNull, 1)


def test_get_requires_one_value_per_key(dbmap) -> None:
    with pytest.raises(ConfigurationError):
        dbmap.get(Invoice, 1, 2)


def test_auto_increment_on_string_key_fails_before_sql(new_dbmap) -> None:
    dbmap = new_dbmap()
    dbmap.add_table_with_name(WithStringPk, "string_pk_test").set_keys(True, "id")
    dbmap.drop_tables()
    dbmap.exec("create table string_pk_test (id varchar(255), name varchar(255))")

    with pytest.raises(ConfigurationError):
        dbmap.insert(WithStringPk(id="1", name="foo"))

    assert dbmap.select(WithStringPk, "select * from string_pk_test") == []


def test_with_ignored_column(dbmap) -> None:
    ic = WithIgnoredColumn(_internal=-1, id=0, created=1, note="not stored")
    dbmap.insert(ic)

    ic2 = dbmap.get(WithIgnoredColumn, ic.id)
    assert ic2 == WithIgnoredColumn(_internal=0, id=ic.id, created=1, note="")

    assert dbmap.delete(ic) == 1
    with pytest.raises(NoRowsError):
        dbmap.get(WithIgnoredColumn, ic.id)


def test_column_props(new_dbmap) -> None:
    dbmap = new_dbmap()
    t1 = dbmap.add_table(Invoice).set_keys(True, "id")
    t1.col_map("updated").set_transient(True)
    t1.col_map("memo").set_max_size(10)
    t1.col_map("person_id").set_unique(True)
    dbmap.drop_tables()
    dbmap.create_tables()

    # transient
    inv = Invoice(created=0, updated=1, memo="my invoice", is_paid=True)
    dbmap.insert(inv)
    inv2 = dbmap.get(Invoice, inv.id)
    assert inv2.updated == 0

    # max size
    inv2.id = 0
    inv2.person_id = 1
    inv2.memo = "this memo is too long"
    with pytest.raises(DBAPIError):
        dbmap.insert(inv2)

    # unique - same person id
    with pytest.raises(DBAPIError):
        dbmap.insert(Invoice(updated=1, memo="invoice2"))


def test_max_size_is_enforced_on_update(new_dbmap) -> None:
    dbmap = new_dbmap()
    dbmap.add_table(Invoice).set_keys(True, "id").col_map("memo").set_max_size(10)
    dbmap.drop_tables()
    dbmap.create_tables()

    inv = Invoice(memo="short")
    dbmap.insert(inv)
    inv.memo = "this memo is too long"
    with pytest.raises(DBAPIError):
        dbmap.update(inv)


def test_persistent_user_with_renamed_non_auto_key(new_dbmap) -> None:
    dbmap = new_dbmap()
    dbmap.add_table(PersistentUser).set_keys(False, "mykey")
    dbmap.drop_tables()
    dbmap.create_tables_if_not_exists()

    pu = PersistentUser(key=43, id="33r", passed_training=False)
    dbmap.insert(pu)

    assert dbmap.get(PersistentUser, pu.key) == pu

    rows = dbmap.select(PersistentUser, "select * from persistentuser")
    assert rows == [pu]


def test_null_values(new_dbmap) -> None:
    dbmap = new_dbmap()
    dbmap.add_table(TableWithNull).set_keys(False, "id")
    dbmap.drop_tables()
    dbmap.create_tables()

    dbmap.exec("insert into tablewithnull values (10, null, null, null, null, null)")

    expected = TableWithNull(id=10)
    t1 = dbmap.get(TableWithNull, 10)
    assert t1 == expected

    t1.str_ = "hi"
    t1.int64 = 999
    t1.float64 = 53.33
    t1.bool_ = True
    t1.bytes_ = bytes([1, 30, 31, 33])
    assert dbmap.update(t1) == 1

    assert dbmap.get(TableWithNull, 10) == t1


def test_with_time(dbmap) -> None:
    t1 = datetime.datetime(2013, 8, 9, 21, 30, 43, tzinfo=datetime.timezone.utc)
    w1 = WithTime(time=t1)
    dbmap.insert(w1)

    w2 = dbmap.get(WithTime, w1.id)
    assert w2.time == t1


def test_raw_select(dbmap) -> None:
    p1 = Person(f_name="bob", l_name="smith")
    dbmap.insert(p1)
    inv1 = Invoice(memo="xmas order", person_id=p1.id, is_paid=True)
    dbmap.insert(inv1)

    query = (
        "select i.id invoice_id, p.id person_id, i.memo, p.f_name "
        "from invoice_test i, person_test p "
        "where i.person_id = p.id"
    )
    rows = dbmap.select(InvoicePersonView, query)

    assert rows == [InvoicePersonView(inv1.id, p1.id, inv1.memo, p1.f_name, 0)]


def test_select_with_unknown_result_column_fails(dbmap) -> None:
    dbmap.insert(Invoice(memo="x"))
    with pytest.raises(ConfigurationError):
        dbmap.select(InvoicePersonView, "select id, memo from invoice_test")


def test_select_one_behavior(dbmap) -> None:
    with pytest.raises(NoRowsError):
        dbmap.select_one(Person, "select * from person_test")

    dbmap.insert(Person(f_name="Bob", l_name="Smith"))
    p = dbmap.select_one(Person, "select * from person_test")
    assert p.f_name == "Bob"
    # post_get ran
    assert p.l_name == "postget"

    dbmap.insert(Person(f_name="Ben", l_name="Smith"))
    p = dbmap.select_one(Person, "select * from person_test order by f_name asc")
    assert p.f_name == "Ben"


def test_select_one_binds_into_instance(dbmap) -> None:
    dbmap.insert(Invoice(memo="only"))
    dest = Invoice()
    assert dbmap.select_one(dest, "select * from invoice_test") is dest
    assert dest.memo == "only"


def test_select_with_bound_arguments(dbmap) -> None:
    a = Invoice(memo="a")
    b = Invoice(memo="b")
    dbmap.insert(a, b)

    rows = dbmap.select(
        Invoice,
        f"select * from invoice_test where memo = {dbmap.dialect.bind_var(0)}",
        "b",
    )
    assert rows == [b]


def test_pre_insert_failure_leaves_no_row(dbmap) -> None:
    bad = Person(f_name="badname")

    with pytest.raises(ValueError) as excinfo:
        dbmap.insert(bad)

    assert excinfo.value is BAD_NAME_ERROR
    assert bad.id == 0
    assert dbmap.select(Person, "select * from person_test") == []


def test_batch_insert_stops_at_first_failure(dbmap) -> None:
    good = Person(f_name="good")
    bad = Person(f_name="badname")
    never = Person(f_name="never")

    with pytest.raises(ValueError):
        dbmap.insert(good, bad, never)

    names = [p.f_name for p in dbmap.select(Person, "select * from person_test")]
    assert names == ["good"]
    assert never.id == 0
