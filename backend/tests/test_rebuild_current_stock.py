from backend.app.db.models.core_types import MovementType
from backend.services.inventory import apply_stock_movement, rebuild_current_stock


def test_rebuild_current_stock_fixes_drift(db_session, make_product):
    """
    GIVEN
    - produit A : ouverture 10 puis sortie -4 (=> 6 attendu)
    - current_stock modifié à la main (hors mouvements) à 99

    THEN
    - rebuild ramène current_stock à 6
    - l'écart corrigé est retourné (6 - 99 = -93)
    """
    a = make_product("A", stock=10)
    apply_stock_movement(db_session, product=a, quantity=-4, movement_type=MovementType.output)
    a.current_stock = 99
    db_session.commit()

    # ---------- ACT ----------
    drift = rebuild_current_stock(db_session)
    db_session.commit()

    # ---------- ASSERT ----------
    db_session.refresh(a)
    assert a.current_stock == 6
    assert drift == {a.id: -93}


def test_rebuild_current_stock_is_idempotent(db_session, make_product):
    a = make_product("A", stock=10)
    a.current_stock = 3
    db_session.commit()

    first = rebuild_current_stock(db_session)
    second = rebuild_current_stock(db_session)

    assert first == {a.id: 7}
    assert second == {}
    assert a.current_stock == 10


def test_rebuild_current_stock_scoped_to_products(db_session, make_product):
    a = make_product("A", stock=10)
    b = make_product("B", stock=5)
    a.current_stock = 0
    b.current_stock = 0
    db_session.commit()

    drift = rebuild_current_stock(db_session, product_ids=[b.id])
    db_session.commit()

    assert drift == {b.id: 5}
    assert db_session.get(type(a), a.id).current_stock == 0  # non touché
    assert db_session.get(type(b), b.id).current_stock == 5


def test_rebuild_without_movements_resets_to_zero(db_session, make_product):
    a = make_product("A", stock=0)
    a.current_stock = 4
    db_session.commit()

    assert rebuild_current_stock(db_session) == {a.id: -4}
    assert a.current_stock == 0
    assert rebuild_current_stock(db_session, product_ids=[]) == {}
